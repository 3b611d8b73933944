import os
from pathlib import Path

from keyfleet.errors import ConfigurationError

# Load .env file if it exists
env_file = Path(__file__).parent.parent / '.env'
if env_file.exists():
    with open(env_file) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#') and '=' in line:
                key, value = line.split('=', 1)
                os.environ.setdefault(key.strip(), value.strip().strip('"\''))

# DigitalOcean API access
DIGITALOCEAN_TOKEN = os.environ.get('DIGITALOCEAN_TOKEN')
API_BASE = os.environ.get('KEYFLEET_API_BASE', 'https://api.digitalocean.com/v2')

# Namespace prepended to campaign tags and node names: "<prefix>-<tag>-<index>"
TAG_PREFIX = os.environ.get('KEYFLEET_TAG_PREFIX', 'huffin')

# Worker control endpoint
WORKER_CERT = Path(os.environ.get('KEYFLEET_WORKER_CERT', 'cert.pem')).expanduser()
WORKER_PORT = int(os.environ.get('KEYFLEET_WORKER_PORT', '1443'))
WORKER_USER = os.environ.get('KEYFLEET_WORKER_USER', 'huffin')
WORKER_PASSPHRASE = os.environ.get('KEYFLEET_WORKER_PASSPHRASE', '')
# Name the worker certificates are issued for, independent of node addresses
WORKER_SERVERNAME = os.environ.get('KEYFLEET_WORKER_SERVERNAME', 'huffin.generator')

REQUEST_TIMEOUT = float(os.environ.get('KEYFLEET_REQUEST_TIMEOUT', '30'))
MAX_CONCURRENCY = int(os.environ.get('KEYFLEET_MAX_CONCURRENCY', '16'))

# DigitalOcean caps per_page at 200; larger fleets are not paginated
NODE_PAGE_SIZE = int(os.environ.get('KEYFLEET_NODE_PAGE_SIZE', '200'))

# Confidence level the ETA is computed against
TARGET_PROBABILITY = 0.95


def require_token() -> str:
    """Return the provider token or fail with a readable message"""
    if not DIGITALOCEAN_TOKEN:
        raise ConfigurationError(
            "DIGITALOCEAN_TOKEN environment variable is required but not set.\n"
            "Please add it to your .env file:\n"
            'DIGITALOCEAN_TOKEN="your-api-token-here"'
        )
    return DIGITALOCEAN_TOKEN
