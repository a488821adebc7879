"""
API Routes for the dashboard and the dispenser device
"""
from flask import Blueprint, request, jsonify

from medmonitor.errors import ValidationError
from medmonitor.services import automation_registry, history_ledger, inventory_store
from medmonitor.services.status_classifier import resolve_taken_status
from medmonitor.services.trigger_engine import run_trigger_check

api_bp = Blueprint('api', __name__, url_prefix='/api/v1')


def _json_object():
    """Request body as a dict; a missing or non-JSON body counts as empty"""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _int_arg(name, default, message):
    raw = request.args.get(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(message)


# ==================== AUTOMATIONS ====================

@api_bp.route('/automation', methods=['POST'])
def add_automation():
    """Create a scheduled dispense rule"""
    automation = automation_registry.create_automation(request.get_json(silent=True))
    return jsonify({
        'status': 'success',
        'message': 'Automation inserted successfully!',
        'data': automation.to_dict()
    }), 201


@api_bp.route('/automation', methods=['GET'])
def get_automations():
    automations = automation_registry.list_automations()
    return jsonify([a.to_dict() for a in automations]), 200


@api_bp.route('/automation/instant', methods=['POST'])
def instant_dispense():
    """Schedule an immediate dispense; the next trigger check fires it"""
    data = _json_object()
    automation = automation_registry.create_instant_dispense(data.get('medicine'))
    return jsonify({
        'status': 'success',
        'message': f'Instant dispense scheduled for {automation.medicine}',
        'data': automation.to_dict()
    }), 201


@api_bp.route('/automation/<int:automation_id>', methods=['PUT'])
def update_automation(automation_id):
    """Turn an automation on or off"""
    data = _json_object()
    status = data.get('status')
    automation = automation_registry.set_status(automation_id, status)
    return jsonify({
        'status': 'success',
        'message': f'Automation status set to "{status}"',
        'data': {
            'id': automation.id,
            'status': automation.status,
            'updated_at': automation.to_dict()['updated_at']
        }
    }), 200


@api_bp.route('/automation/<int:automation_id>', methods=['DELETE'])
def delete_automation(automation_id):
    automation_registry.delete_automation(automation_id)
    return jsonify({'status': 'success', 'message': 'Automation deleted successfully'}), 200


# ==================== HISTORY / DEVICE ====================

@api_bp.route('/iot', methods=['POST'])
def add_history():
    """Record a dose event submitted by a client"""
    record = history_ledger.create_history(request.get_json(silent=True))
    return jsonify({
        'status': 'success',
        'message': 'History record created!',
        'data': record.to_dict()
    }), 201


@api_bp.route('/iot', methods=['GET'])
def get_history():
    """Paginated history, newest first. Query params: page (1-indexed), limit"""
    page = _int_arg('page', 1, 'Invalid page number')
    limit = _int_arg('limit', 10, 'Invalid limit value')

    result = history_ledger.list_history(page=page, limit=limit)
    return jsonify({
        'status': 'success',
        'message': 'History fetched successfully',
        'data': [r.to_dict() for r in result['items']],
        'pagination': result['pagination']
    }), 200


@api_bp.route('/iot/handler', methods=['GET', 'POST'])
def device_handler():
    """
    Trigger check, polled by the scheduler about once a minute.
    Fires every automation scheduled for the current minute.
    """
    result = run_trigger_check()
    return jsonify({'status': 'success', **result.to_dict()}), 200


@api_bp.route('/iot/handler', methods=['PUT'])
def update_taken_status():
    """
    The dispenser reports that a dose was taken.
    Optional JSON body: history_id, correlation_id or medicine to target a record.
    """
    data = _json_object()
    history_id = data.get('history_id')
    if history_id is not None and (isinstance(history_id, bool) or not isinstance(history_id, int)):
        raise ValidationError('history_id must be an integer')
    for field in ('correlation_id', 'medicine'):
        if data.get(field) is not None and not isinstance(data[field], str):
            raise ValidationError(f'{field} must be a string', field=field)

    result = resolve_taken_status(
        history_id=history_id,
        correlation_id=data.get('correlation_id'),
        medicine=data.get('medicine')
    )
    if result is None:
        return jsonify({
            'status': 'success',
            'message': 'No pending history records found',
            'updated': False
        }), 200

    return jsonify({
        'status': 'success',
        'message': 'History record updated',
        'updated': True,
        'data': result
    }), 200


# ==================== INVENTORY ====================

@api_bp.route('/medicine', methods=['GET'])
def get_medicines():
    counters = inventory_store.get_counters()
    return jsonify({
        'status': 'success',
        'message': 'Medicine values retrieved successfully',
        'data': counters
    }), 200


@api_bp.route('/medicine', methods=['PUT'])
def update_medicines():
    """Refill compartments; body maps medicine to the number of doses added"""
    data = _json_object()
    result = inventory_store.add_stock(data)
    return jsonify({
        'status': 'success',
        'message': 'Medicines added successfully',
        'data': result
    }), 200
