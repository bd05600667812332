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

"""The NXQL data model, as published in the product documentation.

This reads a documentation page, not the API. The page is expected to have a
heading (h2 or h3) per table, followed by an HTML table of the fields:

    <h2>device</h2>
    <table>
      <tr><th>Field</th><th>Type</th><th>Description</th></tr>
      <tr><td>name</td><td>string</td><td>Name of the device</td></tr>
      ...

The result is a dictionary of dictionaries:

    { 'device': { 'name': { 'type': 'string', 'description': 'Name of the device' }, ... }, ... }
"""

import logging

import httpx
from bs4 import BeautifulSoup

HEADINGS = ('h2', 'h3')

def parse_data_model(text):
    soup = BeautifulSoup(text, 'html.parser')
    model = dict()
    for heading in soup.find_all(HEADINGS):
        table = heading.find_next(['table'] + list(HEADINGS))
        if table is None or table.name != 'table':
            continue
        fields = dict()
        for row in table.find_all('tr'):
            cells = [ cell.get_text(' ', strip=True) for cell in row.find_all('td') ]
            if not cells or not cells[0]:
                continue
            cells += [ '' ] * (3 - len(cells))
            fields[cells[0]] = dict(type=cells[1], description=cells[2])
        if fields:
            model[heading.get_text(strip=True)] = fields
    return model

def fetch_data_model(url, client=None, timeout=None):
    """Fetch and parse the data model page at url.

    client is an optional httpx.Client; the documentation generally doesn't
    live on the portal, so by default a throwaway client is used.
    """
    if not url:
        raise ValueError('No data model URL configured.')
    kwargs = {}
    if timeout is not None:
        kwargs['timeout'] = timeout
    if client is None:
        with httpx.Client(follow_redirects=True) as client:
            resp = client.get(url, **kwargs)
    else:
        resp = client.get(url, **kwargs)
    resp.raise_for_status()
    model = parse_data_model(resp.text)
    if not model:
        logging.warning('No tables found in data model page {}'.format(url))
    return model
