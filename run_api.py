"""
FastAPI launcher script.

Run with: python run_api.py [config_path]
"""

import sys
from pathlib import Path

# Ensure the project root is in sys.path
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

if __name__ == "__main__":
    import uvicorn

    from date_market.api.main import create_app
    from date_market.core.config_loader import load_config

    config_path = sys.argv[1] if len(sys.argv) > 1 else "config/config.yaml"
    config = load_config(config_path)
    api_config = config.get('api', {})

    uvicorn.run(
        create_app(config),
        host=api_config.get('host', "0.0.0.0"),
        port=api_config.get('port', 8000)
    )
