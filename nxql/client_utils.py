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

"""NXQL Query Encapsulation.

Basic order of operations is to encode a query with encode_query(), fan it
out (see nxql.fanout) and then hand the resulting Response objects to
aggregate().

Response Bodies
---------------

An engine answers a query in one of three ways:

* A JSON array of records. This is success.
* An HTML page. When the engine rejects a query it renders an error page
  with an element of class error_message, and sometimes a list of the
  valid options (field names, table names) under an element of class
  error_options.
* Anything else. Proxies, load balancers and misconfigured engines are
  good at this.

Any failure aborts the whole query. There are no partial results.
"""

import json
import re
from urllib.parse import quote, urlsplit, parse_qsl

from bs4 import BeautifulSoup

QUERY_PATH = '/2/query'
RESULT_FORMAT = 'json'
PLATFORMS = ('windows', 'mac_os', 'mobile')

# An optional BOM and leading comments, then the doctype or the html element.
HTML_MARKER = re.compile(r'\ufeff?\s*(<!--.*?-->\s*)*<(!doctype\s+html|html)[\s>]', re.IGNORECASE | re.DOTALL)
ERROR_MESSAGE_SELECTOR = '.error_message'
ERROR_OPTIONS_SELECTOR = '.error_options'
OPTIONS_DELIMITER = ','

class NXQLError(Exception):
    pass

class NotConnected(NXQLError):
    pass

class DirectoryUnavailable(NXQLError):
    pass

class UnsupportedMethod(NXQLError):
    pass

class UnexpectedResponse(NXQLError):
    pass

class MalformedHtmlResponse(NXQLError):
    pass

class RequestError(NXQLError):
    pass

class BackendQueryError(NXQLError):
    """The engine rendered an error page for the query.

    options may list the valid field or table names the engine suggests.
    """
    def __init__(self, message, options=None):
        NXQLError.__init__(self, message)
        self.message = message
        self.options = options or []
        return

class ErrorDetail(object):
    """The structured error returned instead of raising BackendQueryError."""
    def __init__(self, message, options=None):
        self.message = message
        self.options = options or []
        return

    def __repr__(self):
        return '<{} {!r} options={}>'.format(type(self).__name__, self.message, len(self.options))

    def __eq__(self, other):
        if not isinstance(other, ErrorDetail):
            return NotImplemented
        return self.message == other.message and self.options == other.options

def platform_list(platforms):
    """Validate platform names, preserving order and dropping duplicates."""
    if not platforms:
        return []
    if isinstance(platforms, str):
        platforms = [ platforms ]
    selected = []
    for platform in platforms:
        if platform not in PLATFORMS:
            raise ValueError('Unknown platform: {} (expected one of {})'.format(platform, ', '.join(PLATFORMS)))
        if platform not in selected:
            selected.append(platform)
    return selected

def encode(value):
    """Percent encode everything, including / and spaces."""
    return quote(str(value), safe='')

def encode_query(nxql, platforms=None, parameters=None):
    """Build the request path for a query.

    Parameters:

      nxql          The NXQL query text. It is not checked, the engine does that.
      platforms     Zero or more of PLATFORMS. Each one becomes a platform= entry,
                    in the order supplied.
      parameters    Positional parameter values. They are sent as p1=, p2=, ...
                    in the order supplied.

    Returns something like:

      /2/query?query=%28select%20%28name%29%20%28from%20device%29%29&format=json&platform=windows
    """
    parts = [ 'query={}'.format(encode(nxql)), 'format={}'.format(RESULT_FORMAT) ]
    for platform in platform_list(platforms):
        parts.append('platform={}'.format(encode(platform)))
    for i, value in enumerate(parameters or [], 1):
        parts.append('p{}={}'.format(i, encode(value)))
    return '{}?{}'.format(QUERY_PATH, '&'.join(parts))

def decode_query(path):
    """The inverse of encode_query().

    Returns a tuple (nxql, platforms, parameters).
    """
    nxql = None
    platforms = []
    parameters = {}
    for k, v in parse_qsl(urlsplit(path).query, keep_blank_values=True):
        if   k == 'query':
            nxql = v
        elif k == 'platform':
            platforms.append(v)
        elif re.fullmatch(r'p\d+', k):
            parameters[int(k[1:])] = v
    return nxql, platforms, [ parameters[i] for i in sorted(parameters) ]

class Response(object):
    """Encapsulation of the return from a single target.

    Either text (with status_code) or exc is set. The classification
    properties follow the order in which they should be tested:

        failed      The request never produced a body.
        success     The body parsed as JSON; result holds the parsed value.
        is_html     The body is an HTML document; error_detail may have
                    something to say about it.
    """
    def __init__(self, target, text=None, status_code=None, exc=None):
        self.target = target
        self.text = text
        self.status_code = status_code
        self.exc = exc
        self.decode_error = None
        self.parsed_ = False
        self.result_ = None
        return

    def __repr__(self):
        return '<{} {} status={}>'.format(type(self).__name__, self.target, self.status_code)

    @property
    def failed(self):
        return self.exc is not None

    def parse(self):
        if self.parsed_:
            return
        self.parsed_ = True
        if self.text is None:
            return
        try:
            self.result_ = json.loads(self.text)
        except ValueError as e:
            self.decode_error = e
        return

    @property
    def success(self):
        if self.failed:
            return False
        self.parse()
        return self.text is not None and self.decode_error is None

    @property
    def result(self):
        """Returns the parsed JSON, or None if there isn't any."""
        self.parse()
        return self.result_

    @property
    def records(self):
        """The result as a list of records.

        A JSON array is the normal case; anything else counts as a single record.
        """
        result = self.result
        if isinstance(result, list):
            return result
        return [ result ]

    @property
    def is_html(self):
        return self.text is not None and HTML_MARKER.match(self.text) is not None

    @property
    def error_detail(self):
        """Return the ErrorDetail on an HTML error page.

        None if the error message element can't be found. This is scraping, and
        it only works as long as the engine keeps rendering its error page the
        same way.
        """
        if not self.is_html:
            return None
        soup = BeautifulSoup(self.text, 'html.parser')
        message = soup.select_one(ERROR_MESSAGE_SELECTOR)
        if message is None:
            return None
        options = []
        element = soup.select_one(ERROR_OPTIONS_SELECTOR)
        if element is not None:
            items = element.select('li')
            if items:
                options = [ item.get_text(strip=True) for item in items ]
            else:
                options = [ option.strip() for option in element.get_text().split(OPTIONS_DELIMITER) ]
            options = [ option for option in options if option ]
        return ErrorDetail(message.get_text(' ', strip=True), options)

def aggregate(responses, error_detail=False, debug_print=None):
    """Reduce per-target responses to a single result.

    Parameters:

      responses     Response objects, in target order.
      error_detail  If True, an engine error page is returned as an ErrorDetail
                    instead of being raised as BackendQueryError.
      debug_print   A print function for debug output.

    Records are concatenated in target order. Nothing is deduplicated: if two
    engines return the same record you get it twice.

    When error_detail is set the first error page (in target order) wins and
    the remaining responses aren't looked at, successes included.
    """
    results = []
    for response in responses:

        if response.failed:
            raise RequestError('Request to {} failed: {}: {}'.format(
                    response.target, type(response.exc).__name__, response.exc
                )) from response.exc

        if response.success:
            records = response.records
            if debug_print:
                debug_print('{} -- success ({})'.format(response.target, len(records)))
            results.extend(records)
            continue

        if response.is_html:
            detail = response.error_detail
            if detail is None:
                raise MalformedHtmlResponse('Unexpected HTML response from {} (status {})'.format(
                        response.target, response.status_code
                    ))
            if debug_print:
                debug_print('{} -- error: {}'.format(response.target, detail.message))
            if error_detail:
                return detail
            raise BackendQueryError(detail.message, detail.options)

        raise UnexpectedResponse('Unexpected response from {} (status {}): {}'.format(
                response.target, response.status_code, response.decode_error
            )) from response.decode_error

    return results
