"""Demo API entrypoint: ``python main.py`` or ``uvicorn main:app``."""

import sys

import uvicorn

from shared.settings import ConfigurationError, load_settings
from app import create_app

try:
    settings = load_settings()
except ConfigurationError as e:
    sys.exit(str(e))

app = create_app(settings)


if __name__ == "__main__":
    print(f"Server is running on http://localhost:{settings.port}")
    print(f"Sending traces to SigNoz Cloud ({settings.service_name})")
    print(f"Check {settings.dashboard_url or 'your SigNoz Cloud dashboard'} for traces and logs")
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_config=None)
