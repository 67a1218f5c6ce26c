""" Run the MongoGrid HTTP service: python -m mongogrid """

import logging

from .app import create_app
from .config import Settings
from .store import connect


def main():
    settings = Settings()
    logging.basicConfig(level=settings.LOG_LEVEL,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    # Fail at startup, not at the first request
    client = connect(settings.DATABASE, settings.SERVER_SELECTION_TIMEOUT_MS)

    app = create_app(client, settings.handler_settings())
    logging.getLogger(__name__).info('Server is running on port %s', settings.PORT)
    app.run(host=settings.HOST, port=settings.PORT)


if __name__ == '__main__':
    main()
