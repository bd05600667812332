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

"""Engine Health Check.

Command line:

    engines.py {<portal>}

Lists the engines known to the portal and checks that each of them answers a
trivial query. The portal defaults to PORTAL from `nxql_config.py`.

Each line contains the following information:

    <engine>  [<answered>] [<records>]

Here is example output:

    engine-1.example.com:1671  [OK ] 1
    engine-2.example.com:1671  [   ] ConnectTimeout

The probe query is PROBE_QUERY, which can be set in the configuration.
"""

import sys
import logging
from getpass import getpass

import nxql
from nxql.client_utils import encode_query, aggregate, NXQLError
from nxql.fanout import Fanout

PORTAL = None
USERNAME = None
PASSWORD = None
ENGINE_PORT = 0
SKIP_CERTS = False
TIMEOUT = 30
LOG_LEVEL = None
PROBE_QUERY = '(select (name) (from device) (limit 1))'

def lart(msg=None, help='engines {portal}'):
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

def probe( fanout, target, path ):
    """Probe a single engine.

    Returns (ok, text): text is the record count or the reason it failed.
    """
    try:
        records = aggregate( [ fanout.fetch( target, path ) ] )
    except NXQLError as e:
        return False, str(e)
    return True, str(len(records))

def main( portal ):
    username = USERNAME or input('Username: ')
    password = PASSWORD or getpass('Password for {}: '.format(username))
    try:
        conn = nxql.connect( portal, (username, password), engine_port=ENGINE_PORT, skip_certs=SKIP_CERTS, timeout=TIMEOUT )
    except nxql.NXQLError as e:
        lart('{}: {}'.format(type(e).__name__, e), help=None)

    with conn:
        targets = conn.targets()
        fanout = Fanout( conn.client, targets )
        results = fanout.map( lambda target: probe( fanout, target, encode_query(PROBE_QUERY) ) )

    fsize = max( len(target) for target in targets ) + 1
    for target, (ok, text) in zip(targets, results):
        print('{:<{fsize}s} [{:s}] {}'.format(target, ok and 'OK ' or '   ', text, fsize=fsize))

    return

if __name__ == '__main__':

    argv = sys.argv

    portal = len(argv) > 1 and argv[1] or PORTAL
    if not portal:
        lart('No portal')

    if LOG_LEVEL is not None:
        logging.basicConfig(level=LOG_LEVEL)

    main(portal)
