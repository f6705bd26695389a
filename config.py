import os
from logging.config import dictConfig
from pathlib import Path

import sentry_sdk

NAME = 'osm-store'
VERSION = '0.3.0'
WEBSITE = 'https://github.com/osm-store/osm-store'

USER_AGENT = f'{NAME}/{VERSION} (+{WEBSITE})'
ENVIRONMENT = os.getenv('ENVIRONMENT')
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

DATABASE_LOG = os.getenv('DATABASE_LOG', '0').strip().lower() in ('1', 'true', 'yes')
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite+aiosqlite:///data/osm.db')

# rows per executemany call, also the size of the IN lists checking for missing references
IMPORT_BATCH_SIZE = int(os.getenv('IMPORT_BATCH_SIZE', '5000'))

OPENSTREETMAP_API_URL = os.getenv('OPENSTREETMAP_API_URL', 'https://api.openstreetmap.org/api/0.6/')

# column width of every VARCHAR in the schema
TEXT_LENGTH = 50

DATA_DIR = Path('data')
MAP_DATA_DIR = Path(os.getenv('MAP_DATA_DIR', 'data/mapdata'))

# Logging configuration
dictConfig(
    {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'default': {
                'format': '%(levelname)s | %(asctime)s | %(name)s: %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S',
            },
        },
        'handlers': {
            'default': {
                'formatter': 'default',
                'class': 'logging.StreamHandler',
                'stream': 'ext://sys.stderr',
            },
        },
        'loggers': {
            'root': {'handlers': ['default'], 'level': LOG_LEVEL},
            **{
                # reduce logging verbosity of some modules
                module: {'handlers': [], 'level': 'INFO'}
                for module in (
                    'aiosqlite',
                    'httpx',
                    'httpcore',
                )
            },
            **{
                # conditional database logging
                module: {'handlers': [], 'level': 'INFO'}
                for module in (
                    'sqlalchemy.engine',
                    'sqlalchemy.pool',
                )
                if DATABASE_LOG
            },
        },
    }
)

if SENTRY_DSN := os.getenv('SENTRY_DSN'):
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        release=VERSION,
        environment=ENVIRONMENT,
        enable_tracing=True,
        traces_sample_rate=0.2,
        trace_propagation_targets=None,
    )
