"""Run the Plano gateway: python -m plano"""

import uvicorn

from plano.config import load_config

config = load_config()
uvicorn.run("plano.app:create_app", host=config.host, port=config.port, factory=True)
