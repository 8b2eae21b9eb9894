#!/usr/bin/env python3
"""
Runs the AI Persona backend API with uvicorn.
"""

import sys
import uvicorn

from config.settings import APP_CONFIG, get_server_host, is_production

if __name__ == "__main__":
    host = get_server_host(APP_CONFIG)
    port = APP_CONFIG["port"]
    print(f"Starting AI Persona Backend API on http://{host}:{port}")
    print(f"API docs available at: http://{host}:{port}/docs")

    try:
        uvicorn.run(
            "backend.main:create_app",
            factory=True,
            host=host,
            port=port,
            reload=not is_production(APP_CONFIG),
            log_level=APP_CONFIG["log_level"].lower(),
        )
    except KeyboardInterrupt:
        print("\nServer stopped.")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
