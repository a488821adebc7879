#!/usr/bin/env python3
"""
Development server runner for the Smart Medicine Monitoring backend
Runs the application in development mode with debug and reload enabled
"""
import os
import sys
import subprocess
from pathlib import Path


def check_virtual_environment():
    """Check if running in virtual environment"""
    in_venv = hasattr(sys, 'base_prefix') and sys.base_prefix != sys.prefix

    if not in_venv:
        print("⚠️  Not running in a virtual environment!")
        venv_path = Path(__file__).parent / 'venv'

        if not venv_path.exists():
            print("Creating virtual environment...")
            subprocess.check_call([sys.executable, '-m', 'venv', str(venv_path)])
            print(f"✓ Virtual environment created at: {venv_path}")

        if os.name == 'nt':
            venv_python = venv_path / 'Scripts' / 'python.exe'
        else:
            venv_python = venv_path / 'bin' / 'python'

        if venv_python.exists():
            print("🔄 Restarting with virtual environment...\n")
            os.execv(str(venv_python), [str(venv_python)] + sys.argv)

    return True


def install_dependencies():
    """Install the project and its dependencies in editable mode"""
    base_dir = Path(__file__).parent

    print("📦 Checking dependencies...")

    try:
        subprocess.check_call([
            sys.executable, '-m', 'pip', 'install', '-q', '-e', str(base_dir)
        ])
        print("✓ All dependencies installed")
    except subprocess.CalledProcessError as e:
        print(f"❌ Failed to install dependencies: {e}")
        sys.exit(1)


def load_environment():
    """Load environment variables"""
    env_file = Path(__file__).parent / '.env'

    if env_file.exists():
        from dotenv import load_dotenv
        load_dotenv(env_file)
        print("✓ Environment variables loaded from .env")
    else:
        print("ℹ️  No .env file found (using defaults)")

    # Set defaults for development
    if not os.environ.get('APP_ENV'):
        os.environ['APP_ENV'] = 'development'
    if not os.environ.get('FLASK_APP'):
        os.environ['FLASK_APP'] = 'medmonitor:create_app()'


def initialize_app():
    """Initialize Flask application and make sure inventory counters exist"""
    print("\n📦 Initializing application...")

    # Ensure the sqlite instance directory exists
    instance_dir = Path(__file__).parent / 'instance'
    instance_dir.mkdir(exist_ok=True)
    print("✓ Required directories created")

    # Imported after load_environment so Config sees the .env values
    from medmonitor import create_app
    from medmonitor.services.inventory_store import seed_counters

    app = create_app()
    with app.app_context():
        created = seed_counters()
    if created:
        print(f"✓ Inventory counters created: {', '.join(created)}")
    print("✓ Application initialized with Flask-Migrate")

    return app


def run_development_server(app):
    """Run Flask development server with debug and reload"""
    port = int(os.environ.get('PORT', 5000))
    host = os.environ.get('HOST', '0.0.0.0')

    print("\n" + "="*60)
    print("🚀 Starting Smart Medicine Monitoring Development Server")
    print("="*60)
    print(f"Environment: {os.environ.get('APP_ENV', 'development')}")
    print(f"Timezone: {app.config['TIMEZONE']}")
    print(f"Host: {host}")
    print(f"Port: {port}")
    print(f"Access URL: http://localhost:{port}")
    print("="*60 + "\n")

    try:
        app.run(
            host=host,
            port=port,
            debug=True,
            use_reloader=True
        )
    except KeyboardInterrupt:
        print("\n\n👋 Server stopped by user")
        sys.exit(0)


def main():
    """Main entry point"""
    print("\n🔧 Smart Medicine Monitoring Development Setup\n")

    try:
        check_virtual_environment()
        install_dependencies()
        load_environment()
        app = initialize_app()
        run_development_server(app)
    except KeyboardInterrupt:
        print("\n\n👋 Setup interrupted by user")
        sys.exit(0)


if __name__ == '__main__':
    main()
