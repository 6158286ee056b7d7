"""Tests for provider configuration."""

import unittest
from unittest.mock import patch

from sbomgraph.config import DEFAULT_TIMEOUT, ProviderConfig
from sbomgraph.exceptions import ConfigurationError
from sbomgraph.ignore import ExclusionStrategy


class TestProviderConfig(unittest.TestCase):
    def test_defaults(self):
        config = ProviderConfig()
        self.assertEqual(config.timeout, DEFAULT_TIMEOUT)
        self.assertIsNone(config.cargo_executable)
        self.assertIs(config.ignore_strategy, ExclusionStrategy.INSENSITIVE)
        config.validate()

    def test_non_positive_timeout(self):
        for timeout in (0, -1.5):
            with self.subTest(timeout=timeout):
                with self.assertRaises(ConfigurationError):
                    ProviderConfig(timeout=timeout).validate()

    def test_invalid_strategy(self):
        with self.assertRaises(ConfigurationError):
            ProviderConfig(ignore_strategy="sometimes").validate()

    def test_executable_for(self):
        config = ProviderConfig(cargo_executable="/opt/cargo/bin/cargo")
        self.assertEqual(config.executable_for("cargo"), "/opt/cargo/bin/cargo")
        self.assertIsNone(config.executable_for("go"))
        self.assertIsNone(config.executable_for("mvn"))


class TestFromEnv(unittest.TestCase):
    def test_empty_environment(self):
        self.assertEqual(ProviderConfig.from_env({}), ProviderConfig())

    def test_reads_all_variables(self):
        config = ProviderConfig.from_env(
            {
                "SBOMGRAPH_CARGO_PATH": "/opt/cargo/bin/cargo",
                "SBOMGRAPH_GO_PATH": "/usr/local/go/bin/go",
                "SBOMGRAPH_TIMEOUT": "30",
                "SBOMGRAPH_IGNORE_STRATEGY": "Sensitive",
            }
        )

        self.assertEqual(config.cargo_executable, "/opt/cargo/bin/cargo")
        self.assertEqual(config.go_executable, "/usr/local/go/bin/go")
        self.assertEqual(config.timeout, 30.0)
        self.assertIs(config.ignore_strategy, ExclusionStrategy.SENSITIVE)

    def test_empty_values_are_unset(self):
        config = ProviderConfig.from_env({"SBOMGRAPH_CARGO_PATH": "", "SBOMGRAPH_TIMEOUT": ""})
        self.assertIsNone(config.cargo_executable)
        self.assertEqual(config.timeout, DEFAULT_TIMEOUT)

    def test_non_numeric_timeout(self):
        with self.assertRaisesRegex(ConfigurationError, "SBOMGRAPH_TIMEOUT"):
            ProviderConfig.from_env({"SBOMGRAPH_TIMEOUT": "soon"})

    def test_negative_timeout(self):
        with self.assertRaises(ConfigurationError):
            ProviderConfig.from_env({"SBOMGRAPH_TIMEOUT": "-5"})

    def test_unknown_strategy(self):
        with self.assertRaisesRegex(ConfigurationError, "Unknown ignore strategy"):
            ProviderConfig.from_env({"SBOMGRAPH_IGNORE_STRATEGY": "partial"})

    def test_reads_os_environ(self):
        with patch.dict("os.environ", {"SBOMGRAPH_TIMEOUT": "7.5"}):
            self.assertEqual(ProviderConfig.from_env().timeout, 7.5)
