import json
import logging
import logging.handlers
import os

import pytest

from constants import DEFAULT_CONFIG
from simulation import SimulationController
from utils import setup_logging, load_config, merge_config, log_throttle_steps

CONFIG_PATH = os.path.join(os.path.dirname(__file__), os.pardir, 'config.json')


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield root
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.handlers.RotatingFileHandler):
            handler.close()
            root.removeHandler(handler)
    root.setLevel(level)


def test_merge_config_overlays_nested_sections():
    defaults = {'a': {'x': 1, 'y': 2}, 'b': [1, 2], 'c': 3}
    merged = merge_config(defaults, {'a': {'y': 20, 'z': 30}, 'b': [9]})
    assert merged == {'a': {'x': 1, 'y': 20, 'z': 30}, 'b': [9], 'c': 3}
    # Inputs are left untouched.
    assert defaults == {'a': {'x': 1, 'y': 2}, 'b': [1, 2], 'c': 3}


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / 'missing.json'))


def test_load_config_invalid_json(tmp_path):
    path = tmp_path / 'config.json'
    path.write_text('{"logging": ')
    with pytest.raises(json.JSONDecodeError):
        load_config(str(path))


def test_shipped_config_builds_a_controller():
    config = merge_config(DEFAULT_CONFIG, load_config(CONFIG_PATH))
    assert set(config) == set(DEFAULT_CONFIG)
    controller = SimulationController(config['simulation_parameters'])
    assert controller.particle_count == 1000
    assert controller.solver.broad_phase == 'all_pairs'


def test_setup_logging_writes_rotating_log_file(tmp_path, restore_root_logger):
    log_file = tmp_path / 'logs' / 'run.log'
    setup_logging({'logging': {'level': 'debug', 'log_file': str(log_file), 'max_bytes': 2048, 'backup_count': 2}})

    assert restore_root_logger.level == logging.DEBUG
    file_handlers = [h for h in restore_root_logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].maxBytes == 2048
    assert file_handlers[0].backupCount == 2

    logging.info("balloon test message")
    file_handlers[0].flush()
    assert "balloon test message" in log_file.read_text()


def test_setup_logging_does_not_duplicate_handlers(tmp_path, restore_root_logger):
    config = {'logging': {'log_file': str(tmp_path / 'run.log')}}
    setup_logging(config)
    setup_logging(config)
    assert len(restore_root_logger.handlers) == 2


@pytest.mark.parametrize("value, expected", [(0, 1), (-5, 1), (1, 1), (120, 120)])
def test_log_throttle_is_at_least_one(value, expected):
    assert log_throttle_steps({'log_throttle_steps': value}) == expected


def test_log_throttle_defaults_when_missing():
    assert log_throttle_steps({}) == 120
