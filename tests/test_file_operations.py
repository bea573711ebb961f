import json

import pytest

from budget_planner.file_operations import safe_filename, write_json_atomic


def test_write_json_atomic_replaces_file(tmp_path):
    path = tmp_path / 'nested' / 'alice.json'

    write_json_atomic(path, {'2024': {'savings_percentage': 20.0}})
    write_json_atomic(path, {'2025': {'savings_percentage': float('nan')}})

    assert json.loads(path.read_text()) == {'2025': {'savings_percentage': None}}
    assert [p.name for p in path.parent.iterdir()] == ['alice.json']


def test_failed_serialization_leaves_no_temp_file(tmp_path):
    path = tmp_path / 'alice.json'
    write_json_atomic(path, {'kept': True})

    with pytest.raises(TypeError):
        write_json_atomic(path, {'bad': object()})

    assert [p.name for p in tmp_path.iterdir()] == ['alice.json']
    assert json.loads(path.read_text()) == {'kept': True}


def test_safe_filename():
    assert safe_filename('jane doe@example') == 'jane_doeexample'
    assert safe_filename('', default='user') == 'user'
