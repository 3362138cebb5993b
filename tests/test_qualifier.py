#!/usr/bin/env python3
"""Host qualification tests: reachability and OS version gate."""

import logging
import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fixtures import err, make_collaborators, make_config, ok

from shared.results import RemoteOutcome
from shared.statuses import ErrorKind, ProbeStatus
from commands.tamper.qualifier import parse_os_version, qualify_host


class TestQualifyHost(unittest.TestCase):

    def setUp(self):
        self.config = make_config()

    def test_unreachable_host_is_offline(self):
        collaborators = make_collaborators(reachable=False)

        result = qualify_host("SERVER1", collaborators, self.config)

        self.assertFalse(result.proceed)
        self.assertEqual(result.status, ProbeStatus.OFFLINE)
        collaborators.os_query.os_version.assert_not_called()

    def test_reachability_failure_is_absorbed_as_offline(self):
        failure = RemoteOutcome.failure(ErrorKind.UNREACHABLE, OSError("ping exploded"))
        collaborators = make_collaborators(reachable=failure)

        result = qualify_host("SERVER1", collaborators, self.config)

        self.assertEqual(result.status, ProbeStatus.OFFLINE)
        self.assertFalse(result.proceed)

    def test_supported_version_proceeds_with_unknown_status(self):
        collaborators = make_collaborators(os_version="10.0.17763")

        result = qualify_host("SERVER1", collaborators, self.config)

        self.assertTrue(result.proceed)
        self.assertEqual(result.status, ProbeStatus.UNKNOWN)
        collaborators.os_query.os_version.assert_called_once_with("SERVER1")

    def test_version_at_minimum_proceeds(self):
        collaborators = make_collaborators(os_version="6.1.7601")
        self.assertTrue(qualify_host("SERVER1", collaborators, self.config).proceed)

    def test_version_below_minimum_is_not_supported(self):
        collaborators = make_collaborators(os_version="6.0.6002")

        result = qualify_host("SERVER1", collaborators, self.config)

        self.assertFalse(result.proceed)
        self.assertEqual(result.status, ProbeStatus.NOT_SUPPORTED)

    def test_minimum_version_comes_from_config(self):
        config = make_config(qualification__minimum_os_version="10.0")
        collaborators = make_collaborators(os_version="6.3.9600")

        self.assertEqual(qualify_host("SERVER1", collaborators, config).status, ProbeStatus.NOT_SUPPORTED)

    def test_rpc_transport_failure_is_rpc_unavailable(self):
        collaborators = make_collaborators(os_version=err(ErrorKind.TRANSPORT_UNAVAILABLE))

        result = qualify_host("SERVER1", collaborators, self.config)

        self.assertFalse(result.proceed)
        self.assertEqual(result.status, ProbeStatus.RPC_UNAVAILABLE)

    def test_authorization_failure_is_access_denied(self):
        collaborators = make_collaborators(os_version=err(ErrorKind.AUTHORIZATION_DENIED))

        result = qualify_host("SERVER1", collaborators, self.config)

        self.assertFalse(result.proceed)
        self.assertEqual(result.status, ProbeStatus.ACCESS_DENIED)

    def test_unclassified_failure_logs_and_keeps_unknown(self):
        collaborators = make_collaborators(os_version=err(ErrorKind.UNCLASSIFIED, "weird"))

        with self.assertLogs("commands.tamper.qualifier", level=logging.ERROR) as logs:
            result = qualify_host("SERVER1", collaborators, self.config)

        self.assertFalse(result.proceed)
        self.assertEqual(result.status, ProbeStatus.UNKNOWN)
        self.assertIn("RuntimeError: weird", logs.output[0])
        self.assertIn("SERVER1", logs.output[0])

    def test_other_classified_version_failure_is_not_recorded(self):
        collaborators = make_collaborators(os_version=err(ErrorKind.SERVICE_ABSENT))

        with self.assertLogs("commands.tamper.qualifier", level=logging.ERROR):
            result = qualify_host("SERVER1", collaborators, self.config)

        self.assertFalse(result.proceed)
        self.assertEqual(result.status, ProbeStatus.UNKNOWN)

    def test_unparseable_version_is_unclassified(self):
        collaborators = make_collaborators(os_version=ok("not-a-version"))

        with self.assertLogs("commands.tamper.qualifier", level=logging.ERROR):
            result = qualify_host("SERVER1", collaborators, self.config)

        self.assertFalse(result.proceed)
        self.assertEqual(result.status, ProbeStatus.UNKNOWN)


class TestParseOSVersion(unittest.TestCase):

    def test_windows_versions_compare_numerically(self):
        self.assertGreater(parse_os_version("10.0.19045"), parse_os_version("6.3.9600"))
        self.assertLess(parse_os_version("6.0.6002"), parse_os_version("6.1"))
        self.assertEqual(parse_os_version(" 6.1 "), parse_os_version("6.1.0"))


if __name__ == '__main__':
    unittest.main(verbosity=2)
