"""
Run the auto-scheduling API with uvicorn.
"""

import argparse
import os
import sys

import uvicorn

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.config import IS_PRODUCTION, LOG_LEVEL


def main():
    parser = argparse.ArgumentParser(description='Serve the Department Auto-Scheduling API')
    parser.add_argument('--host', default=os.getenv("API_HOST", "0.0.0.0"))
    parser.add_argument('--port', type=int, default=int(os.getenv("API_PORT", "8000")))
    parser.add_argument(
        '--reload',
        action='store_true',
        default=not IS_PRODUCTION,
        help='Reload on code changes (default outside production)'
    )
    args = parser.parse_args()

    print("=" * 60)
    print("Department Auto-Scheduling API Server")
    print("=" * 60)
    print(f"Starting server on http://{args.host}:{args.port}")
    print(f"API Documentation: http://{args.host}:{args.port}/docs")
    print("=" * 60)

    uvicorn.run(
        "app.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
