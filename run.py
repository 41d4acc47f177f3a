#!/usr/bin/env python3
"""
Main entry point for running the background screening service
"""

from app.main import create_app
import os

if __name__ == '__main__':
    # Set environment
    os.environ.setdefault('FLASK_ENV', 'development')

    # Create and run app
    app = create_app()

    print("Starting background screening service...")
    print("API available at: http://localhost:5001/api/background-checks")
    print("\nPress CTRL+C to stop the server")

    app.run(
        host='0.0.0.0',
        port=5001,
        debug=True
    )
