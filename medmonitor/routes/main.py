"""
Main routes: service health check
"""
from flask import Blueprint, jsonify, current_app

from medmonitor.utils.timezone import now as tz_now

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    """Health check"""
    return jsonify({
        'message': 'Smart Medicine Monitoring Backend is running!',
        'server_time': tz_now().strftime('%Y-%m-%d %H:%M:%S'),
        'timezone': current_app.config['TIMEZONE']
    }), 200
