"""
Tests for run configuration loading and CLI overrides.
"""

import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path

import yaml

from utils.config import RunConfig, create_arg_parser, parse_args_to_config


class TestRunConfig(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_defaults(self):
        config = RunConfig()
        self.assertIsNone(config.seed)
        self.assertEqual(config.human_count, 1)
        self.assertTrue(config.reveal_bots)

    def test_invalid_human_count(self):
        with self.assertRaises(ValueError):
            RunConfig(human_count=2)

    def test_from_json_file(self):
        path = self.temp_dir / "run.json"
        path.write_text(json.dumps({"seed": "T1", "human_count": 4, "unknown": 1}))
        config = RunConfig.from_file(path)
        self.assertEqual(config.seed, "T1")
        self.assertEqual(config.human_count, 4)

    def test_from_yaml_file(self):
        path = self.temp_dir / "run.yaml"
        path.write_text(yaml.safe_dump({"reveal_bots": False, "max_turns": 50}))
        config = RunConfig.from_file(path)
        self.assertFalse(config.reveal_bots)
        self.assertEqual(config.max_turns, 50)

    def test_save_and_reload(self):
        config = RunConfig(seed="abc", human_count=4, logging_verbosity=2)
        for name in ("saved.yaml", "saved.json"):
            path = self.temp_dir / name
            config.save_to_file(path)
            self.assertEqual(RunConfig.from_file(path).to_dict(), config.to_dict())

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            RunConfig.from_file(self.temp_dir / "absent.yaml")

    def test_unsupported_format(self):
        path = self.temp_dir / "run.toml"
        path.write_text("seed = 1")
        with self.assertRaises(ValueError):
            RunConfig.from_file(path)


class TestArgParsing(unittest.TestCase):

    def test_cli_defaults(self):
        args = create_arg_parser().parse_args([])
        self.assertEqual(parse_args_to_config(args).to_dict(), RunConfig().to_dict())
        self.assertFalse(args.resume)

    def test_cli_overrides_file(self):
        temp_dir = tempfile.mkdtemp()
        try:
            path = os.path.join(temp_dir, "run.json")
            with open(path, "w") as f:
                json.dump({"seed": "file", "human_count": 4, "max_turns": 20}, f)
            args = create_arg_parser().parse_args(
                ["--config", path, "--seed", "cli", "--no-reveal-bots", "--verbosity", "2"]
            )
            config = parse_args_to_config(args)
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)
        self.assertEqual(config.seed, "cli")
        self.assertEqual(config.human_count, 4)
        self.assertEqual(config.max_turns, 20)
        self.assertFalse(config.reveal_bots)
        self.assertEqual(config.logging_verbosity, 2)


if __name__ == '__main__':
    unittest.main()
