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

"""Field Catalogs.

There is no endpoint which lists the fields of a table. What there is: ask for
a field which doesn't exist and the engine's error page lists the ones which do.
ErrorPageCatalog does exactly that.

Callers should go through FieldCatalog.describe_table() (or
Connection.list_fields()) so that a real metadata endpoint can take over
without them noticing.
"""

from .client_utils import ErrorDetail, UnexpectedResponse

BOGUS_FIELD = 'no_such_field'
AGGREGATE_WINDOW = '(between midnight-1d now)'

class FieldCatalog(object):
    """Base class for things which know the fields of a table."""

    def describe_table(self, table, aggregate_table=None, platform='windows', dynamic=False):
        """Return a list of field names."""
        raise NotImplementedError

def probe_query(table, aggregate_table=None, dynamic=False):
    """The deliberately invalid query for table.

    Examples:

        (select (no_such_field) (from device) (limit 1))
        (select (id) (from device (with execution (compute no_such_field) (between midnight-1d now))) (limit 1))

    With dynamic the bogus field is #no_such_field, and the engine lists the
    categories and scores instead.
    """
    field = dynamic and '#' + BOGUS_FIELD or BOGUS_FIELD
    if aggregate_table:
        return '(select (id) (from {} (with {} (compute {}) {})) (limit 1))'.format(
                table, aggregate_table, field, AGGREGATE_WINDOW
            )
    return '(select ({}) (from {}) (limit 1))'.format(field, table)

class ErrorPageCatalog(FieldCatalog):
    """Discovers fields by scraping the engine error page.

    connection is anything with a query() method compatible with
    nxql.connection.Connection.query().
    """

    def __init__(self, connection):
        self.connection = connection
        return

    def describe_table(self, table, aggregate_table=None, platform='windows', dynamic=False):
        nxql = probe_query(table, aggregate_table, dynamic)
        result = self.connection.query(nxql, platforms=platform and [ platform ] or None, error_detail=True)
        if not isinstance(result, ErrorDetail):
            raise UnexpectedResponse('Expected an error page listing the fields of {}, got {} record(s)'.format(
                    table, len(result)
                ))
        return result.options
