#!/usr/bin/env python3
"""
Development startup script.

Runs pre-flight checks and starts the storefront with auto-reload.
"""

import os
import shutil
import subprocess
import sys
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent


def check_dependencies():
    """Check if required dependencies are installed."""
    try:
        import fastapi
        import uvicorn
        import httpx
        import reportlab
        print("✓ All core dependencies installed")
        return True
    except ImportError as e:
        print(f"✗ Missing dependency: {e.name}")
        print("\nRun: pip install -e .")
        return False


def check_env():
    """Check if .env file exists."""
    env_file = PROJECT_ROOT / ".env"
    env_example = PROJECT_ROOT / ".env.example"

    if env_file.exists():
        print("✓ Configuration file found")
        return True
    elif env_example.exists():
        print("! Configuration file not found, copying from example...")
        shutil.copy(env_example, env_file)
        print("✓ Created .env from example")
        print("  Please edit .env with your marketplace API URL")
        return True
    else:
        print("✗ No configuration file found")
        return False


def start_storefront(port: int):
    """Start the storefront in development mode."""
    print(f"\n🛒 Starting Storefront on http://localhost:{port} ...")
    process = subprocess.Popen(
        [
            sys.executable, "-m", "uvicorn",
            "storefront.main:app",
            "--reload",
            "--host", "0.0.0.0",
            "--port", str(port),
        ],
        cwd=PROJECT_ROOT,
        env={**os.environ, "DEBUG": os.environ.get("DEBUG", "true")},
    )

    print("\n" + "=" * 60)
    print(f"📍 Storefront API: http://localhost:{port}/docs")
    print("\nPress Ctrl+C to stop")
    print("=" * 60)

    try:
        process.wait()
    except KeyboardInterrupt:
        print("\n\nShutting down...")
        process.terminate()
        process.wait()
        print("Storefront stopped.")


def main():
    print("=" * 60)
    print("Marketplace Storefront - Development Server")
    print("=" * 60)

    # Pre-flight checks
    print("\nRunning pre-flight checks...")

    if not check_dependencies():
        sys.exit(1)

    if not check_env():
        sys.exit(1)

    print("\n✓ All checks passed!")

    start_storefront(int(os.environ.get("PORT", "8000")))


if __name__ == "__main__":
    main()
