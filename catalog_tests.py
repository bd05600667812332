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

import unittest

import nxql.catalog as catalog
from nxql.client_utils import ErrorDetail, UnexpectedResponse
from nxql.connection import Connection

class StubConnection(object):
    """Records query() calls and returns a canned result."""
    def __init__(self, result):
        self.result = result
        self.calls = []
        return

    def query(self, nxql, **kwargs):
        self.calls.append((nxql, kwargs))
        return self.result

class StaticCatalog(catalog.FieldCatalog):
    def __init__(self, connection):
        self.connection = connection
        return

    def describe_table(self, table, aggregate_table=None, platform='windows', dynamic=False):
        return [ table, aggregate_table, platform, dynamic ]

class TestProbeQuery(unittest.TestCase):

    def test_table(self):
        self.assertEqual(catalog.probe_query('device'), '(select (no_such_field) (from device) (limit 1))')
        return

    def test_dynamic(self):
        self.assertEqual(catalog.probe_query('device', dynamic=True), '(select (#no_such_field) (from device) (limit 1))')
        return

    def test_aggregate(self):
        self.assertEqual(catalog.probe_query('device', 'execution'),
                         '(select (id) (from device (with execution (compute no_such_field) (between midnight-1d now))) (limit 1))'
                        )
        return

class TestErrorPageCatalog(unittest.TestCase):

    def test_options(self):
        conn = StubConnection(ErrorDetail('Unknown field', ['name', 'platform', 'last_seen']))
        self.assertEqual(catalog.ErrorPageCatalog(conn).describe_table('device'), ['name', 'platform', 'last_seen'])
        nxql, kwargs = conn.calls[0]
        self.assertEqual(nxql, '(select (no_such_field) (from device) (limit 1))')
        self.assertEqual(kwargs, dict(platforms=['windows'], error_detail=True))
        return

    def test_platform(self):
        conn = StubConnection(ErrorDetail('Unknown field', []))
        catalog.ErrorPageCatalog(conn).describe_table('device', platform='mobile')
        self.assertEqual(conn.calls[0][1]['platforms'], ['mobile'])
        return

    def test_no_platform(self):
        conn = StubConnection(ErrorDetail('Unknown field', []))
        catalog.ErrorPageCatalog(conn).describe_table('user', platform=None)
        self.assertIsNone(conn.calls[0][1]['platforms'])
        return

    def test_records_instead(self):
        with self.assertRaises(UnexpectedResponse):
            catalog.ErrorPageCatalog(StubConnection([{'id': 1}])).describe_table('device')
        return

    def test_base_class(self):
        with self.assertRaises(NotImplementedError):
            catalog.FieldCatalog().describe_table('device')
        return

    def test_replaceable(self):
        """Connection.list_fields() goes through whatever catalog it was given."""
        conn = Connection(catalog=StaticCatalog)
        self.assertEqual(conn.list_fields('device', 'execution', 'mac_os', True), ['device', 'execution', 'mac_os', True])
        return

if __name__ == '__main__':
    unittest.main(verbosity=2)
