"""NXQL Client Configuration. This is unambiguously a Python sourcefile.

Copy this to nxql_config.py and edit it. It is read by query.py, engines.py and
fields.py with "from nxql_config import *" so anything defined here overrides
the defaults in those scripts.
"""

# The portal. A scheme and port are allowed: "https://portal.example.com:8443".
PORTAL = 'demo.pac.nexthink.cloud'

# If either of these is None you will be prompted. Think twice before putting
# a password in here.
USERNAME = None
PASSWORD = None

# 0 infers it: 443 for cloud instances, 1671 on premises.
ENGINE_PORT = 0

# Turning off certificate validation is a security risk. If you must, for a
# lab instance with a self-signed certificate:
# SKIP_CERTS = True
SKIP_CERTS = False

# Request timeout in seconds. Progress is logged every minute while waiting.
TIMEOUT = 300

# Determines the logging level if not None
import logging
LOG_LEVEL = logging.INFO
# LOG_LEVEL = None

# fields.py +model reads the published data model from here.
DATA_MODEL_URL = None

# The query engines.py uses to check that an engine answers.
# PROBE_QUERY = '(select (name) (from device) (limit 1))'
