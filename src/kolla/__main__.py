"""Run the Kolla gateway: python -m kolla"""

import logging

import uvicorn

from kolla.config import load_config

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

config = load_config()
uvicorn.run("kolla.app:create_app", host=config.host, port=config.port, factory=True)
