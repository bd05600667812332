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
import threading
from time import sleep

import httpx

from nxql.fanout import Fanout, url_for
from nxql.client_utils import UnsupportedMethod

class Engines(object):
    """Answers for each engine host, with optional delays."""
    def __init__(self, answers, delays=None):
        self.answers = answers
        self.delays = delays or {}
        self.requests = []
        self.lock = threading.Lock()
        return

    def __call__(self, request):
        with self.lock:
            self.requests.append(request)
        host = request.url.host
        sleep(self.delays.get(host, 0))
        answer = self.answers[host]
        if isinstance(answer, Exception):
            raise answer
        return httpx.Response(200, text=answer)

class TestUrlFor(unittest.TestCase):

    def test_join(self):
        self.assertEqual(url_for('e1:1671', '/2/query?query=x'), 'https://e1:1671/2/query?query=x')
        self.assertEqual(url_for('e1:1671/', '2/query'), 'https://e1:1671/2/query')
        return

class TestFanout(unittest.TestCase):
    """Tests for running requests against several targets."""

    def fanout(self, engines, targets, **kwargs):
        return Fanout(httpx.Client(transport=httpx.MockTransport(engines)), targets, **kwargs)

    def test_target_order(self):
        """Results come back in target order even when the first target is slowest."""
        engines = Engines(dict(e1='[1]', e2='[2]', e3='[3]'), delays=dict(e1=0.3, e2=0.1))
        responses = self.fanout(engines, ['e1:1671', 'e2:1671', 'e3:1671']).get('/2/query?query=q')
        self.assertEqual([ response.target for response in responses ], ['e1:1671', 'e2:1671', 'e3:1671'])
        self.assertEqual([ response.text for response in responses ], ['[1]', '[2]', '[3]'])
        return

    def test_parallel(self):
        """All of the requests are in flight at once."""
        barrier = threading.Barrier(3, timeout=5)
        def handler(request):
            barrier.wait()
            return httpx.Response(200, text='[]')
        fanout = Fanout(httpx.Client(transport=httpx.MockTransport(handler)), ['e1', 'e2', 'e3'])
        self.assertEqual(len(fanout.get('/x')), 3)
        return

    def test_request_url(self):
        engines = Engines(dict(e1='[]'))
        self.fanout(engines, ['e1:1671']).get('/2/query?query=a%20b&format=json')
        url = engines.requests[0].url
        self.assertEqual(url.scheme, 'https')
        self.assertEqual(url.port, 1671)
        self.assertEqual(url.path, '/2/query')
        self.assertEqual(url.params['query'], 'a b')
        return

    def test_get_only(self):
        engines = Engines(dict(e1='[]'))
        with self.assertRaises(UnsupportedMethod):
            self.fanout(engines, ['e1']).get('/2/query', method='POST')
        self.assertEqual(engines.requests, [])
        return

    def test_lowercase_get(self):
        engines = Engines(dict(e1='[]'))
        self.assertEqual(len(self.fanout(engines, ['e1']).get('/2/query', method='get')), 1)
        return

    def test_bad_address_captured(self):
        """An address with a bad port fails that target only."""
        engines = Engines(dict(e1='[1]'))
        with self.assertLogs(level='WARNING'):
            responses = self.fanout(engines, ['e1', 'e1:abc']).get('/2/query')
        self.assertFalse(responses[0].failed)
        self.assertIsInstance(responses[1].exc, httpx.InvalidURL)
        return

    def test_transport_failure_captured(self):
        """A dead engine doesn't stop the others."""
        engines = Engines(dict(e1='[1]', e2=httpx.ConnectError('refused')))
        with self.assertLogs(level='WARNING'):
            responses = self.fanout(engines, ['e1', 'e2']).get('/2/query')
        self.assertFalse(responses[0].failed)
        self.assertTrue(responses[1].failed)
        self.assertIsInstance(responses[1].exc, httpx.ConnectError)
        return

    def test_progress(self):
        """Slow targets are reported but not cancelled."""
        engines = Engines(dict(e1='[1]', e2='[2]'), delays=dict(e2=0.5))
        with self.assertLogs(level='INFO') as logs:
            responses = self.fanout(engines, ['e1', 'e2'], progress_interval=0.1).get('/2/query')
        self.assertEqual(responses[1].text, '[2]')
        self.assertTrue(any( 'Still waiting' in line and 'e2' in line for line in logs.output ))
        self.assertFalse(any( 'e1,' in line for line in logs.output ))
        return

    def test_map(self):
        fanout = Fanout(None, ['a', 'b', 'c'])
        self.assertEqual(fanout.map(lambda target, suffix: target + suffix, '!'), ['a!', 'b!', 'c!'])
        return

    def test_map_no_targets(self):
        self.assertEqual(Fanout(None, []).map(lambda target: target), [])
        return

    def test_map_reraises(self):
        def task(target):
            if target == 'b':
                raise KeyError(target)
            return target
        with self.assertRaises(KeyError):
            Fanout(None, ['a', 'b']).map(task)
        return

if __name__ == '__main__':
    unittest.main(verbosity=2)
