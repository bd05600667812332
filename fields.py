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

"""Table Fields.

Command line:

    fields.py <table> [<aggregate-table>] {+windows|+mac_os|+mobile} {+dynamic} {+model}

Lists the fields of a table, one per line.

    table            The table, e.g. device.
    aggregate-table  The fields which can be computed over e.g. execution for
                     the table.
    windows, mac_os, mobile
                     The platform. Default is windows.
    dynamic          List categories and scores instead.
    model            Read the published data model (DATA_MODEL_URL) instead of
                     asking the engines, and print field types too.

Settings come from `nxql_config.py` as for query.py.
"""

import sys
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
DATA_MODEL_URL = None

def lart(msg=None, help='fields <table> [<aggregate-table>] {+windows|+mac_os|+mobile} {+dynamic} {+model}'):
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

def from_model( table ):
    try:
        model = nxql.Connection( data_model_url=DATA_MODEL_URL ).fetch_data_model( timeout=TIMEOUT )
    except (nxql.NXQLError, ValueError) as e:
        lart('{}: {}'.format(type(e).__name__, e), help=None)
    if table not in model:
        lart('{} is not in the data model'.format(table), help=None)
    fields = model[table]
    fsize = max( len(field) for field in fields ) + 1
    for field, info in fields.items():
        print('{:<{fsize}s} {}'.format(field, info['type'], fsize=fsize))
    return

def main( table, aggregate_table, platform, dynamic ):
    username = USERNAME or input('Username: ')
    password = PASSWORD or getpass('Password for {}: '.format(username))
    try:
        conn = nxql.connect( PORTAL, (username, password), engine_port=ENGINE_PORT, skip_certs=SKIP_CERTS, timeout=TIMEOUT )
    except nxql.NXQLError as e:
        lart('{}: {}'.format(type(e).__name__, e), help=None)

    with conn:
        try:
            fields = conn.list_fields( table, aggregate_table, platform, dynamic )
        except nxql.NXQLError as e:
            lart('{}: {}'.format(type(e).__name__, e), help=None)

    for field in fields:
        print(field)
    return

if __name__ == '__main__':

    argv = sys.argv[1:]
    flags = { arg[1:].lower() for arg in argv if arg.startswith('+') }
    argv = [ arg for arg in argv if not arg.startswith('+') ]

    if not argv:
        lart('No table')
    for flag in flags - set(PLATFORMS) - {'dynamic', 'model'}:
        lart('Unrecognized: +{}'.format(flag))
    platforms = [ platform for platform in PLATFORMS if platform in flags ]
    if len(platforms) > 1:
        lart('Only one platform please')

    if LOG_LEVEL is not None:
        logging.basicConfig(level=LOG_LEVEL)

    if 'model' in flags:
        from_model( argv[0] )
        sys.exit(0)

    if not PORTAL:
        lart('PORTAL is not set in nxql_config.py')

    main( argv[0], len(argv) > 1 and argv[1] or None, platforms and platforms[0] or 'windows', 'dynamic' in flags )
