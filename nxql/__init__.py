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

"""NXQL Fanout Client.

This is in several parts:

 * connection:      portal connection state and the public operations
 * client_utils:    query encoding and response classification
 * fanout:          runs one request against many engines in parallel
 * catalog:         field discovery
 * datamodel:       the published data model

Federated Data Sources
----------------------

A deployment has one portal and several engines, and each engine holds the
data for its own share of the devices. The portal lists the engines
(/api/configuration/v1/engines) and a query is sent to all of them
simultaneously. The results are concatenated in the order the portal listed
the engines. They are not deduplicated.
"""

from .connection import Connection, Engine, ENGINES, PORTAL
from .client_utils import (
        NXQLError, NotConnected, DirectoryUnavailable, UnsupportedMethod, BackendQueryError,
        UnexpectedResponse, MalformedHtmlResponse, RequestError, ErrorDetail, PLATFORMS
    )

def connect(host, credential, portal_port=443, engine_port=0, skip_certs=False, **kwargs):
    """A wrapper around Connection.connect().

    Additional keyword arguments are passed to Connection(). Returns the
    connected Connection.
    """
    conn = Connection(**kwargs)
    conn.connect( host, credential, portal_port, engine_port, skip_certs )
    return conn
