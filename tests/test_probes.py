#!/usr/bin/env python3
"""Stop probe, write probe and probe ordering tests."""

import logging
import os
import sys
import unittest
from unittest.mock import Mock

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fixtures import err, make_collaborators, make_config

from shared.results import ProbeSelection
from shared.statuses import ErrorKind, ProbeStatus
from commands.tamper.probes import probe_stop, probe_write, run_probes
from commands.tamper.remote_fs import RemoteFileHandle


class TestStopProbe(unittest.TestCase):

    def setUp(self):
        self.config = make_config(agent__service_display_name="Agent Defense Service")

    def test_not_stoppable_is_protected(self):
        collaborators = make_collaborators(can_stop=False)

        self.assertEqual(probe_stop("SERVER1", collaborators, self.config), ProbeStatus.PROTECTED)
        collaborators.service_query.can_stop_service.assert_called_once_with("Agent Defense Service", "SERVER1")

    def test_stoppable_is_not_protected(self):
        collaborators = make_collaborators(can_stop=True)
        self.assertEqual(probe_stop("SERVER1", collaborators, self.config), ProbeStatus.NOT_PROTECTED)

    def test_missing_service(self):
        collaborators = make_collaborators(can_stop=err(ErrorKind.SERVICE_ABSENT))
        self.assertEqual(probe_stop("SERVER1", collaborators, self.config), ProbeStatus.SERVICE_MISSING)

    def test_authorization_failure(self):
        collaborators = make_collaborators(can_stop=err(ErrorKind.AUTHORIZATION_DENIED))
        self.assertEqual(probe_stop("SERVER1", collaborators, self.config), ProbeStatus.ACCESS_DENIED)

    def test_unclassified_failure_returns_none_and_logs(self):
        collaborators = make_collaborators(can_stop=err(ErrorKind.TRANSPORT_UNAVAILABLE, "pipe gone"))

        with self.assertLogs("commands.tamper.probes", level=logging.ERROR) as logs:
            self.assertIsNone(probe_stop("SERVER1", collaborators, self.config))

        self.assertIn("pipe gone", logs.output[0])


    def test_path_failure_during_service_query_returns_none(self):
        collaborators = make_collaborators(can_stop=err(ErrorKind.PATH_UNREACHABLE))

        with self.assertLogs("commands.tamper.probes", level=logging.ERROR):
            self.assertIsNone(probe_stop("SERVER1", collaborators, self.config))


class TestWriteProbe(unittest.TestCase):

    def setUp(self):
        self.config = make_config(
            agent__admin_share="C$",
            agent__data_directory="ProgramData\\Vendor\\Agent",
            agent__probe_file_name="probe.txt",
        )

    def test_missing_admin_share(self):
        collaborators = make_collaborators(share_exists=False)

        self.assertEqual(probe_write("SERVER1", collaborators, self.config),
                         ProbeStatus.UNABLE_TO_ACCESS_REMOTE_DIRECTORY)
        collaborators.file_system.path_exists.assert_called_once_with("\\\\SERVER1\\C$")
        collaborators.file_system.create_file.assert_not_called()

    def test_admin_share_error_is_unable_to_access(self):
        collaborators = make_collaborators(share_exists=err(ErrorKind.AUTHORIZATION_DENIED))
        self.assertEqual(probe_write("SERVER1", collaborators, self.config),
                         ProbeStatus.UNABLE_TO_ACCESS_REMOTE_DIRECTORY)

    def test_created_file_is_deleted_and_not_protected(self):
        handle = RemoteFileHandle("SERVER2", "C$", "ProgramData\\Vendor\\Agent\\probe.txt")
        collaborators = make_collaborators(create=handle)

        self.assertEqual(probe_write("SERVER2", collaborators, self.config), ProbeStatus.NOT_PROTECTED)
        collaborators.file_system.create_file.assert_called_once_with(
            "\\\\SERVER2\\C$\\ProgramData\\Vendor\\Agent\\probe.txt"
        )
        collaborators.file_system.delete.assert_called_once_with(handle)

    def test_failed_cleanup_still_reports_not_protected(self):
        collaborators = make_collaborators(delete=err(ErrorKind.AUTHORIZATION_DENIED))

        with self.assertLogs("commands.tamper.probes", level=logging.WARNING) as logs:
            status = probe_write("SERVER2", collaborators, self.config)

        self.assertEqual(status, ProbeStatus.NOT_PROTECTED)
        self.assertIn("could not be removed", logs.output[0])

    def test_authorization_error_on_create_is_protected(self):
        collaborators = make_collaborators(create=err(ErrorKind.AUTHORIZATION_DENIED))

        self.assertEqual(probe_write("SERVER1", collaborators, self.config), ProbeStatus.PROTECTED)
        collaborators.file_system.delete.assert_not_called()

    def test_other_create_failure_returns_none(self):
        collaborators = make_collaborators(create=err(ErrorKind.UNCLASSIFIED, "sharing violation"))

        with self.assertLogs("commands.tamper.probes", level=logging.ERROR):
            self.assertIsNone(probe_write("SERVER1", collaborators, self.config))


class TestRunProbes(unittest.TestCase):

    def setUp(self):
        self.config = make_config()

    def test_stop_probe_runs_before_write_probe(self):
        collaborators = make_collaborators()
        manager = Mock()
        manager.attach_mock(collaborators.service_query.can_stop_service, "stop")
        manager.attach_mock(collaborators.file_system.path_exists, "share")

        run_probes("SERVER1", ProbeSelection(run_write_probe=True, run_stop_probe=True),
                   collaborators, self.config)

        self.assertEqual([c[0] for c in manager.mock_calls], ["stop", "share"])

    def test_write_result_overwrites_stop_result(self):
        collaborators = make_collaborators(can_stop=False)

        outcome = run_probes("SERVER1", ProbeSelection(run_write_probe=True, run_stop_probe=True),
                             collaborators, self.config)

        self.assertEqual(outcome.status, ProbeStatus.NOT_PROTECTED)
        self.assertEqual(outcome.stop_status, ProbeStatus.PROTECTED)
        self.assertEqual(outcome.write_status, ProbeStatus.NOT_PROTECTED)

    def test_unclassified_write_keeps_stop_result(self):
        collaborators = make_collaborators(can_stop=True, create=err(ErrorKind.UNCLASSIFIED))

        with self.assertLogs("commands.tamper.probes", level=logging.ERROR):
            outcome = run_probes("SERVER1", ProbeSelection(run_write_probe=True, run_stop_probe=True),
                                 collaborators, self.config)

        self.assertEqual(outcome.status, ProbeStatus.NOT_PROTECTED)
        self.assertIsNone(outcome.write_status)

    def test_only_selected_probe_runs(self):
        collaborators = make_collaborators()

        outcome = run_probes("SERVER1", ProbeSelection(run_stop_probe=True), collaborators, self.config)

        collaborators.file_system.path_exists.assert_not_called()
        self.assertEqual(outcome.status, ProbeStatus.PROTECTED)
        self.assertIsNone(outcome.write_status)

    def test_unclassified_single_probe_keeps_initial_status(self):
        collaborators = make_collaborators(can_stop=err(ErrorKind.UNCLASSIFIED))

        with self.assertLogs("commands.tamper.probes", level=logging.ERROR):
            outcome = run_probes("SERVER1", ProbeSelection(run_stop_probe=True), collaborators, self.config)

        self.assertEqual(outcome.status, ProbeStatus.UNKNOWN)


if __name__ == '__main__':
    unittest.main(verbosity=2)
