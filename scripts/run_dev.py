#!/usr/bin/env python3
"""
Development server runner for the Ad Creative DNA API
Includes auto-reload, logging, and environment checking
"""

import os
import sys
import uvicorn
from pathlib import Path

# Add the parent directory to Python path
sys.path.append(str(Path(__file__).parent.parent))

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

def check_environment():
    """Show the brand and extraction settings the server will start with."""
    optional_vars = [
        "API_HOST",
        "API_PORT",
        "DEBUG",
        "BRAND_COLORS",
        "BRAND_RULE_VERSION",
        "PUBLIC_VERIFY_URL",
        "ENABLE_TEXT_DETECTION",
        "EXTRACTION_TIMEOUT_SECONDS",
        "PHISHING_WHITELIST",
    ]

    print("📋 Optional configurations:")
    for var in optional_vars:
        print(f"  {var}: {os.getenv(var, 'Not set')}")

    timeout = os.getenv("EXTRACTION_TIMEOUT_SECONDS")
    if timeout is not None:
        try:
            float(timeout)
        except ValueError:
            print(f"❌ EXTRACTION_TIMEOUT_SECONDS must be a number, got {timeout!r}")
            return False

    return True

def check_dependencies():
    """Check if all required dependencies are available."""
    required_modules = [
        "fastapi",
        "uvicorn",
        "multipart",
        "pytesseract",
        "qrcode",
        "cv2",
        "PIL",  # Pillow imports as PIL
        "numpy",
        "structlog"
    ]

    missing_modules = []
    for module in required_modules:
        try:
            __import__(module)
        except ImportError:
            missing_modules.append(module)

    if missing_modules:
        print(f"❌ Missing required Python modules: {', '.join(missing_modules)}")
        print("Please run: pip install -e .")
        return False

    print("✅ All required dependencies found")
    return True

def main():
    """Main entry point for development server."""
    print("🧬 Ad Creative DNA - Development Server")
    print("=" * 50)

    if not check_environment():
        sys.exit(1)

    if not check_dependencies():
        sys.exit(1)

    # Text detection needs the tesseract binary, not just the Python wrapper
    from addna.services.text_regions import tesseract_available
    if tesseract_available():
        print("✅ Tesseract binary found")
    elif os.getenv("ENABLE_TEXT_DETECTION", "true").lower() in ("1", "true", "yes"):
        print("❌ Tesseract binary not found")
        print("Install tesseract or set ENABLE_TEXT_DETECTION=false")
        sys.exit(1)

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", 8000))
    debug = os.getenv("DEBUG", "true").lower() == "true"

    print(f"\n🚀 Starting development server...")
    print(f"   Host: {host}")
    print(f"   Port: {port}")
    print(f"   Debug: {debug}")
    print(f"   Docs: http://{host}:{port}/docs")
    print(f"   API: http://{host}:{port}")
    print("\n⏹️  Press Ctrl+C to stop the server")
    print("=" * 50)

    try:
        uvicorn.run(
            "addna.main:app",
            host=host,
            port=port,
            reload=debug,
            log_level="debug" if debug else "info",
            access_log=True,
        )
    except KeyboardInterrupt:
        print("\n🛑 Server stopped by user")
    except Exception as e:
        print(f"\n❌ Server error: {str(e)}")
        sys.exit(1)

if __name__ == "__main__":
    main()
