#!/usr/bin/env python3
"""
Development startup script for the ScriptFlow API
"""

import sys
from pathlib import Path


def main():
    """Main startup function"""
    print("🚀 Starting ScriptFlow API...")

    env_file = Path(".env")
    if not env_file.exists():
        print("⚠️  .env file not found. Falling back to defaults and environment variables.")

    # Check if virtual environment is activated
    if not (hasattr(sys, 'base_prefix') and sys.base_prefix != sys.prefix):
        print("⚠️  Virtual environment not detected. Consider using venv or conda.")

    from scriptflow.config.settings import settings

    # Create data directory
    data_dir = Path("data")
    data_dir.mkdir(exist_ok=True)

    base = f"http://localhost:{settings.api_port}{settings.api_prefix}"
    print("🌟 Starting FastAPI server...")
    print(f"📚 API Documentation: {base}/docs")
    print(f"🏥 Health Check: {base}/health")
    print("🔑 Issue a development token with: python scripts/issue_token.py <user-id>")
    print("🔄 Use Ctrl+C to stop the server")

    try:
        import uvicorn
        uvicorn.run(
            "main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=True,
            log_level=settings.log_level.lower()
        )
    except KeyboardInterrupt:
        print("\n👋 Server stopped by user")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
