import os
import tempfile
import unittest

from routine_generator.config import DEFAULT_CONFIG, get_runtime, load_config, resolve_api_key
from routine_generator.errors import INTERNAL, ConfigurationError


class LoadConfigTests(unittest.TestCase):
    def test_missing_file_returns_defaults(self):
        config = load_config("does-not-exist.yaml")
        self.assertEqual(config, DEFAULT_CONFIG)
        self.assertIsNot(config, DEFAULT_CONFIG)

    def test_partial_file_is_merged_with_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.yaml")
            with open(path, "w", encoding="utf-8") as f:
                f.write("generation:\n  provider: claude\n  claude:\n    model: claude-test\nvalidation:\n  strict: true\n")
            config = load_config(path)

        self.assertEqual(config["generation"]["provider"], "claude")
        self.assertEqual(config["generation"]["claude"]["model"], "claude-test")
        self.assertEqual(config["generation"]["claude"]["api_key_env"], "ANTHROPIC_API_KEY")
        self.assertTrue(config["validation"]["strict"])
        self.assertEqual(config["history"]["max_records"], 30)


    def test_malformed_yaml_is_configuration_error_with_cause(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.yaml")
            with open(path, "w", encoding="utf-8") as f:
                f.write("generation: [unclosed\n")
            with self.assertRaises(ConfigurationError) as ctx:
                load_config(path)

        self.assertEqual(ctx.exception.code, INTERNAL)
        self.assertIsNotNone(ctx.exception.__cause__)


class ResolveApiKeyTests(unittest.TestCase):
    def test_local_runtime_reads_environment(self):
        config = load_config(None)
        self.assertEqual(resolve_api_key(config, environ={"GEMINI_API_KEY": "abc"}), "abc")

    def test_local_runtime_missing_key_is_configuration_error(self):
        config = load_config(None)
        with self.assertRaises(ConfigurationError) as ctx:
            resolve_api_key(config, environ={})
        self.assertEqual(ctx.exception.code, INTERNAL)

    def test_deployed_runtime_reads_secret_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            secret_path = os.path.join(tmpdir, "GEMINI_API_KEY")
            with open(secret_path, "w", encoding="utf-8") as f:
                f.write("from-secret\n")
            config = load_config(None)
            config["generation"]["gemini"]["api_key_secret_file"] = secret_path

            api_key = resolve_api_key(config, environ={"ROUTINE_RUNTIME": "deployed", "GEMINI_API_KEY": "from-env"})

        self.assertEqual(api_key, "from-secret")

    def test_deployed_runtime_without_secret_fails(self):
        config = load_config(None)
        config["generation"]["gemini"]["api_key_secret_file"] = "/nonexistent/secret"
        with self.assertRaises(ConfigurationError):
            resolve_api_key(config, environ={"ROUTINE_RUNTIME": "deployed"})

    def test_unknown_runtime_is_rejected(self):
        with self.assertRaises(ConfigurationError):
            get_runtime({"runtime": "staging"}, environ={})


if __name__ == "__main__":
    unittest.main()
