import logging

import uvicorn

import config
from utils.logging_config import setup_logging

# Initialize centralized logging configuration
setup_logging()

# Validate critical configuration before the app is built
from utils.config_validator import validate_or_exit
validate_or_exit(config)

# SQL loggers are noisy: the catalog is queried on every cart mutation
for logger_name in ['aiosqlite', 'sqlalchemy', 'sqlalchemy.engine', 'sqlalchemy.pool', 'sqlalchemy.orm']:
    logging.getLogger(logger_name).setLevel(logging.WARNING)

from web.app import create_app

app = create_app()


def main() -> None:
    logging.info(f"[run.py] Starting POS engine on {config.WEBAPP_HOST}:{config.WEBAPP_PORT} "
                 f"({config.RUNTIME_ENVIRONMENT.value})")
    uvicorn.run(app, host=config.WEBAPP_HOST, port=config.WEBAPP_PORT, log_config=None)


if __name__ == '__main__':
    main()
