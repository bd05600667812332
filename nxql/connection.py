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

"""Portal Connections.

Basic order of operations is to allocate a Connection, call connect() and
then query():

    conn = Connection()
    conn.connect('demo.pac.nexthink.cloud', ('user', 'secret'))
    rows = conn.query('(select (name) (from device) (limit 1))')

connect() asks the portal for its engines, and queries are fanned out to all
of them (or to the portal, with target=PORTAL).

Ports
-----

The portal is on 443 unless the host says otherwise ("portal:8443"). Engines
on a cloud instance (CLOUD_PATTERN) listen on 443, on premises they listen
on 1671. Pass engine_port to override that.

Threads
-------

Queries may run concurrently on one Connection; the underlying httpx.Client
is shared. connect() must not be called while queries are in flight.
"""

import logging
import re

import httpx

from .client_utils import (
        aggregate, encode_query, NotConnected, DirectoryUnavailable, RequestError
    )
from .fanout import Fanout, url_for
from .catalog import ErrorPageCatalog
from .datamodel import fetch_data_model

DEFAULT_PORTAL_PORT = 443
CLOUD_ENGINE_PORT = 443
ONPREM_ENGINE_PORT = 1671
CLOUD_PATTERN = re.compile(r'(^|\.)nexthink\.cloud$', re.IGNORECASE)
SCHEME_PATTERN = re.compile(r'^[a-z][a-z0-9+.-]*://', re.IGNORECASE)
ENGINES_PATH = '/api/configuration/v1/engines'
# Seconds, applied to the shared client. This is the hard limit for a request.
DEFAULT_TIMEOUT = 300

ENGINES = 'engines'
PORTAL = 'portal'

def normalize_host(host, port=DEFAULT_PORTAL_PORT):
    """Normalize a portal host.

    Strips the scheme and anything after the authority. An embedded port wins
    over the port argument.

    Returns a tuple (hostname, port).
    """
    host = SCHEME_PATTERN.sub('', host.strip())
    host = host.split('/')[0].split('?')[0]
    name, sep, embedded = host.rpartition(':')
    if sep and embedded.isdigit():
        host = name
        port = embedded
    elif sep and not embedded:
        host = name
    return host.lower(), int(port)

def engine_port_for(host, engine_port=0):
    """The engine port, inferred from the host when engine_port is 0."""
    if engine_port:
        return int(engine_port)
    if CLOUD_PATTERN.search(host):
        return CLOUD_ENGINE_PORT
    return ONPREM_ENGINE_PORT

class Engine(object):
    """An entry from the portal's engine directory.

    address is whatever the portal said, "host" or "host:port". descriptor is
    the complete directory entry.
    """
    def __init__(self, address, descriptor=None):
        self.address = address
        self.descriptor = descriptor or dict(address=address)
        return

    def __repr__(self):
        return '<{} {}>'.format(type(self).__name__, self.address)

    def __eq__(self, other):
        if not isinstance(other, Engine):
            return NotImplemented
        return self.address == other.address

    def target(self, engine_port):
        """host:port for the engine, using engine_port if the address has none."""
        if ':' in self.address:
            return self.address
        return '{}:{}'.format(self.address, engine_port)

class Connection(object):
    """Connection state for one portal and its engines.

    Parameters:

      timeout           Request timeout in seconds for the shared client.
      transport         An httpx transport, passed to httpx.Client. Tests use
                        httpx.MockTransport.
      catalog           A FieldCatalog class (called with the Connection) used
                        by list_fields(). Default is ErrorPageCatalog.
      data_model_url    Where fetch_data_model() looks.
      progress_interval Seconds between progress messages during fanout.
    """

    def __init__(self, timeout=DEFAULT_TIMEOUT, transport=None, catalog=ErrorPageCatalog,
                       data_model_url=None, progress_interval=None):
        self.timeout = timeout
        self.transport = transport
        self.catalog = catalog(self)
        self.data_model_url = data_model_url
        self.progress_interval = progress_interval
        self.client_ = None
        self.reset()
        return

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    def reset(self):
        """Back to the disconnected defaults."""
        self.close()
        self.host = ''
        self.portal_port = DEFAULT_PORTAL_PORT
        self.engine_port = 0
        self.credential = None
        self.engines = []
        self.skip_certs = False
        return

    def close(self):
        if self.client_ is not None:
            self.client_.close()
            self.client_ = None
        return

    @property
    def portal(self):
        """host:port of the portal, or '' when not connected."""
        if not self.host:
            return ''
        return '{}:{}'.format(self.host, self.portal_port)

    @property
    def connected(self):
        return bool(self.host and self.engines)

    @property
    def client(self):
        """The shared httpx.Client, created on first use.

        Certificate validation is fixed when the client is created.
        """
        if self.client_ is None:
            self.client_ = httpx.Client(**self.client_kwargs())
        return self.client_

    def client_kwargs(self):
        """Keyword arguments for httpx.Client."""
        kwargs = dict(auth=self.credential, verify=not self.skip_certs, timeout=self.timeout)
        if self.transport is not None:
            kwargs['transport'] = self.transport
        return kwargs

    def connect(self, host, credential, portal_port=DEFAULT_PORTAL_PORT, engine_port=0, skip_certs=False):
        """Connect to the portal and discover the engines.

        Parameters:

          host          The portal, optionally with scheme and port:
                        "https://portal.example.com:8443/".
          credential    A tuple (username, secret), sent with HTTP Basic
                        authentication on every request.
          portal_port   Used unless host has a port.
          engine_port   0 to infer from the host.
          skip_certs    Don't validate TLS certificates.

        All or nothing: if the engines can't be listed DirectoryUnavailable is
        raised and the Connection is left disconnected, whatever it was
        connected to before.
        """
        self.reset()
        try:
            self.host, self.portal_port = normalize_host(host, portal_port)
            self.engine_port = engine_port_for(self.host, engine_port)
            self.credential = tuple(credential)
            self.skip_certs = bool(skip_certs)
            if self.skip_certs:
                logging.warning('Certificate validation is disabled for {}. This is a security risk.'.format(self.portal))
            self.engines = self.resolve_engines()
        except DirectoryUnavailable as e:
            logging.error('Failed to connect to {}: {}'.format(self.portal, e))
            self.reset()
            raise
        except Exception:
            self.reset()
            raise

        logging.info('Connected to {}, {} engine(s) on port {}.'.format(self.portal, len(self.engines), self.engine_port))
        return

    def resolve_engines(self):
        """Ask the portal for the engine directory.

        Returns a list of Engine. Raises DirectoryUnavailable unless there is at
        least one.
        """
        url = url_for(self.portal, ENGINES_PATH)
        try:
            resp = self.client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DirectoryUnavailable('Engine directory request failed: {}: {}'.format(type(e).__name__, e)) from e
        if resp.status_code >= 400:
            raise DirectoryUnavailable('Engine directory returned status {}'.format(resp.status_code))
        try:
            descriptors = resp.json()
        except ValueError as e:
            raise DirectoryUnavailable('Engine directory is not JSON: {}'.format(e)) from e
        if not isinstance(descriptors, list):
            raise DirectoryUnavailable('Engine directory is not a list.')
        engines = []
        for descriptor in descriptors:
            if not (isinstance(descriptor, dict) and descriptor.get('address')):
                raise DirectoryUnavailable('Engine entry without an address: {!r}'.format(descriptor))
            engines.append(Engine(descriptor['address'], descriptor))
        if not engines:
            raise DirectoryUnavailable('No engines listed by {}'.format(self.portal))
        return engines

    def targets(self, target=ENGINES):
        """host:port strings for the target selector, ENGINES or PORTAL."""
        if   target == ENGINES:
            if not self.engines:
                raise NotConnected('Not connected: no engines.')
            return [ engine.target(self.engine_port) for engine in self.engines ]
        elif target == PORTAL:
            if not self.host:
                raise NotConnected('Not connected: no portal.')
            return [ self.portal ]
        raise ValueError('Unknown target: {}'.format(target))

    def query(self, nxql, platforms=None, parameters=None, timeout=None, target=ENGINES,
                    error_detail=False, method='GET', debug_print=None):
        """Run an NXQL query.

        Parameters:

          nxql          The query.
          platforms     Platform filters, see nxql.client_utils.PLATFORMS.
          parameters    Positional parameter values (p1, p2, ...).
          timeout       Per request, overriding the client timeout.
          target        ENGINES (all of them) or PORTAL.
          error_detail  Return an ErrorDetail for an engine error page instead
                        of raising BackendQueryError.
          method        Only GET works.
          debug_print   A print function for debug output.

        Returns the records from all targets, concatenated in target order.
        """
        targets = self.targets(target)
        path = encode_query(nxql, platforms, parameters)
        if debug_print:
            debug_print('{} -> {}'.format(path, ', '.join(targets)))
        responses = Fanout( self.client, targets, self.progress_interval ).get( path, method, timeout )
        return aggregate( responses, error_detail, debug_print )

    def list_engines(self):
        return list(self.engines)

    def list_fields(self, table, aggregate_table=None, platform='windows', dynamic=False):
        """Field names for table. See nxql.catalog."""
        return self.catalog.describe_table(table, aggregate_table, platform, dynamic)

    def fetch_data_model(self, url=None, timeout=None):
        """See nxql.datamodel."""
        try:
            return fetch_data_model( url or self.data_model_url, timeout=timeout )
        except httpx.HTTPError as e:
            raise RequestError('Data model request failed: {}: {}'.format(type(e).__name__, e)) from e
