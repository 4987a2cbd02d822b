"""Locust entry point for the storefront API.

Scenarios:

- ``BrowsingUser``: anonymous catalogue reads and shipping quotes.
- ``GuestBuyer`` / ``RegisteredBuyer``: full checkouts, with and without an account.
- ``LastUnitRaceUser``: everyone buys the same scarce product; watch for overselling.

Examples::

    locust -f loadtests/locustfile.py --host http://localhost:8000
    locust -f loadtests/locustfile.py LastUnitRaceUser --headless -u 50 -r 50 -t 30s
    locust -f loadtests/locustfile.py BrowsingUser GuestBuyer --headless -u 50 -r 5 -t 5m --csv=results/storefront
"""

import logging

from locust import events

from loadtests.helpers.response import error_detail
from loadtests.scenarios.browsing import BrowsingUser  # noqa: F401
from loadtests.scenarios.checkout import GuestBuyer, RegisteredBuyer  # noqa: F401
from loadtests.scenarios.stress import LastUnitRaceUser  # noqa: F401

logger = logging.getLogger("storefront.loadtest")


@events.request.add_listener
def log_failed_request(request_type, name, response, exception, **_kw):
    """Put the API's own error message next to each failed request."""
    if exception:
        logger.error("%s %s raised %s", request_type, name, exception)
    elif response is not None and response.status_code >= 400:
        logger.warning("%s %s -> %s: %s", request_type, name, response.status_code, error_detail(response))


@events.test_start.add_listener
def announce_target(environment, **_kwargs):
    logger.info("storefront load test against %s", environment.host)
