#!/usr/bin/python3
# Copyright (c) 2026 by Fred Morris Tacoma WA
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""NXQL Query.

Command line:

    query.py <nxql> {<parameter>...} {+windows} {+mac_os} {+mobile} {+portal} {+debug}

Runs the query on all of the engines and prints the combined records as JSON.

    nxql        The query, quoted.
    parameter   Values for p1, p2, ... in the query.
    windows, mac_os, mobile
                Platform filters. Any number of them.
    portal      Send the query to the portal instead of the engines.
    debug       Print the request and per-engine outcomes to STDERR.

Corresponding entries can be set in an optional `nxql_config.py`, see
nxql_config-sample.py:

    PORTAL      The portal host, e.g. "demo.pac.nexthink.cloud".
    USERNAME    Prompted for if not set.
    PASSWORD    Prompted for if not set.
    ENGINE_PORT 0 to infer it.
    SKIP_CERTS  Don't validate certificates. Don't do this.
    TIMEOUT     Request timeout, seconds.
    LOG_LEVEL   Determines the logging level if not None.
"""

import sys
import json
import logging
from getpass import getpass

import nxql
from nxql.client_utils import PLATFORMS

PORTAL = None
USERNAME = None
PASSWORD = None
ENGINE_PORT = 0
SKIP_CERTS = False
TIMEOUT = 300
LOG_LEVEL = None

def lart(msg=None, help='query <nxql> {<parameter>...} {+windows} {+mac_os} {+mobile} {+portal} {+debug}'):
    if msg:
        print(msg, file=sys.stderr)
    if help:
        print(help, file=sys.stderr)
    sys.exit(1)

try:
    from nxql_config import *
except ImportError:
    pass
except Exception as e:
    lart('{}: {}'.format(type(e).__name__, e))

def debug_print(msg):
    print(msg, file=sys.stderr)
    return

def main( query, parameters, platforms, target, debug ):
    username = USERNAME or input('Username: ')
    password = PASSWORD or getpass('Password for {}: '.format(username))
    try:
        conn = nxql.connect( PORTAL, (username, password), engine_port=ENGINE_PORT, skip_certs=SKIP_CERTS, timeout=TIMEOUT )
    except nxql.NXQLError as e:
        lart('{}: {}'.format(type(e).__name__, e), help=None)

    with conn:
        try:
            records = conn.query( query, platforms, parameters, target=target, debug_print=debug and debug_print or None )
        except nxql.BackendQueryError as e:
            msg = e.message
            if e.options:
                msg += '\nOptions: {}'.format(', '.join(e.options))
            lart(msg, help=None)
        except (nxql.NXQLError, ValueError) as e:
            lart('{}: {}'.format(type(e).__name__, e), help=None)

    print(json.dumps(records, indent=2))
    return

if __name__ == '__main__':

    argv = sys.argv[1:]
    flags = { arg[1:].lower() for arg in argv if arg.startswith('+') }
    argv = [ arg for arg in argv if not arg.startswith('+') ]

    if not argv:
        lart('No query')
    if not PORTAL:
        lart('PORTAL is not set in nxql_config.py')
    for flag in flags - set(PLATFORMS) - {'portal', 'debug'}:
        lart('Unrecognized: +{}'.format(flag))

    if LOG_LEVEL is not None:
        logging.basicConfig(level=LOG_LEVEL)

    main( argv[0], argv[1:],
          [ platform for platform in PLATFORMS if platform in flags ],
          'portal' in flags and nxql.PORTAL or nxql.ENGINES,
          'debug' in flags
        )
