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

"""A fanout widget for NXQL engines.

The general notion here is that the portal knows about (multiple) engines, and
a query is sent to all of them in parallel. Each engine holds its own slice of
the data so the answer is the sum of the parts.

Assets here address the following concerns:

* Marshalling the request out to the targets.
* Waiting for all of them, and saying something if that takes a while.
* Returning the individual results in target order.

Reducing the results to a single result set is the business of
nxql.client_utils.aggregate().
"""

import concurrent.futures
import logging

import httpx

from .client_utils import Response, UnsupportedMethod

# Seconds between progress messages while waiting on targets. Nothing is
# cancelled, the client timeout does that.
PROGRESS_INTERVAL = 60
SCHEME = 'https://'

def url_for(target, path):
    return '{}{}/{}'.format(SCHEME, target.rstrip('/'), path.lstrip('/'))

class Fanout(object):
    """The encapsulation of a set of targets to be fanned out to."""

    def __init__(self, client, targets, progress_interval=None):
        """Parameters:

          client            An httpx.Client. It is shared by all of the threads
                            and carries the credentials, TLS and timeout settings.
          targets           A list of "host:port" strings.
          progress_interval Seconds between progress messages.
        """
        self.client = client
        self.targets = list(targets)
        self.progress_interval = progress_interval or PROGRESS_INTERVAL
        return

    def map(self, task, *args, **kwargs):
        """Perform some operation on the fanout and return the results.

        task() is called as follows:

            task( target, *args, **kwargs )

        Return: A list of the individual results, in the same order as targets.
        Not completion order.

        Exceptions raised by task() are reraised here, after everything has
        finished.
        """
        if not self.targets:
            return []
        with concurrent.futures.ThreadPoolExecutor(max_workers=len(self.targets)) as executor:
            threads = [ executor.submit( task, target, *args, **kwargs ) for target in self.targets ]
            pending = set(threads)
            waited = 0
            while pending:
                done, pending = concurrent.futures.wait( pending, timeout=self.progress_interval )
                if pending:
                    waited += self.progress_interval
                    logging.info('Still waiting after {}s on {} of {} target(s): {}'.format(
                            waited, len(pending), len(threads),
                            ', '.join( target for target, thread in zip(self.targets, threads) if thread in pending )
                        ))

        return [ thread.result() for thread in threads ]

    def fetch(self, target, path, timeout=None):
        """GET path from a single target and wrap the outcome in a Response.

        Transport failures are captured in the Response, not raised.
        """
        kwargs = {}
        if timeout is not None:
            kwargs['timeout'] = timeout
        url = url_for(target, path)
        try:
            resp = self.client.get(url, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logging.warning('Request to {} failed: {}'.format(target, type(e).__name__))
            return Response(target, exc=e)
        return Response(target, text=resp.text, status_code=resp.status_code)

    def get(self, path, method='GET', timeout=None):
        """Issue the request against every target.

        Only GET is supported. The API is query-only.

        Returns a list of Response objects in target order.
        """
        if method.upper() != 'GET':
            raise UnsupportedMethod('HTTP method not implemented: {}'.format(method))
        return self.map( self.fetch, path, timeout=timeout )
