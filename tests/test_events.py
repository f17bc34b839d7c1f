"""Tests for interaction classification and option walking."""

import pytest

from interaction_router.events import (
    Autocomplete,
    Command,
    ComponentActivation,
    InvalidInteractionPayload,
    ModalSubmission,
    Ping,
    UnknownInteractionType,
    classify,
    walk_options,
)


def _command(options=None, *, interaction_type=2, command_type=1, name="welcomer"):
    return {
        "id": "900",
        "type": interaction_type,
        "token": "tok",
        "guild_id": "10",
        "member": {"user": {"id": "77"}},
        "data": {"name": name, "type": command_type, "options": options or []},
    }


def test_ping_classified():
    event = classify({"type": 1, "id": "1"})

    assert isinstance(event, Ping)
    assert event.interaction_id == "1"


def test_command_with_subcommand_records_path_and_arguments():
    options = [
        {
            "type": 1,
            "name": "set",
            "options": [{"type": 4, "name": "event", "value": 0}],
        }
    ]

    event = classify(_command(options))

    assert isinstance(event, Command)
    assert event.name == "welcomer"
    assert event.path == ("set",)
    assert event.options == ({"type": 4, "name": "event", "value": 0},)
    assert event.user_id == "77"
    assert event.guild_id == "10"


def test_subcommand_group_descends_into_subcommand():
    options = [
        {
            "type": 2,
            "name": "triggers",
            "options": [{"type": 1, "name": "add", "options": [{"type": 3, "name": "flow", "value": "x"}]}],
        }
    ]

    path, arguments = walk_options(options)

    assert path == ("triggers", "add")
    assert arguments == ({"type": 3, "name": "flow", "value": "x"},)


def test_plain_options_are_not_part_of_path():
    path, arguments = walk_options([{"type": 3, "name": "query", "value": "hi"}])

    assert path == ()
    assert arguments == ({"type": 3, "name": "query", "value": "hi"},)


def test_context_menu_commands_are_not_walked():
    event = classify(_command([{"type": 1, "name": "ignored"}], command_type=3, name="Quick Edit"))

    assert isinstance(event, Command)
    assert event.path == ()


def test_autocomplete_exposes_focused_option():
    options = [
        {
            "type": 1,
            "name": "info",
            "options": [{"type": 3, "name": "webhook", "value": "ann", "focused": True}],
        }
    ]

    event = classify(_command(options, interaction_type=4, name="webhook"))

    assert isinstance(event, Autocomplete)
    assert not isinstance(event, Command)
    assert event.path == ("info",)
    assert event.focused["value"] == "ann"


def test_component_activation_classified():
    payload = {
        "type": 3,
        "user": {"id": "5"},
        "data": {"custom_id": "t_abc", "component_type": 3, "values": ["1", "2"]},
    }

    event = classify(payload)

    assert isinstance(event, ComponentActivation)
    assert event.custom_id == "t_abc"
    assert event.component_type == 3
    assert event.values == ("1", "2")
    assert event.user_id == "5"


def test_modal_submission_collects_text_inputs():
    payload = {
        "type": 5,
        "data": {
            "custom_id": "t_modal",
            "components": [
                {"type": 1, "components": [{"type": 4, "custom_id": "content", "value": "hello"}]},
                {"type": 1, "components": [{"type": 4, "custom_id": "title", "value": None}]},
            ],
        },
    }

    event = classify(payload)

    assert isinstance(event, ModalSubmission)
    assert event.fields == {"content": "hello", "title": ""}


def test_unknown_type_raises():
    with pytest.raises(UnknownInteractionType) as err:
        classify({"type": 99})

    assert err.value.interaction_type == 99


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {},
        {"type": "ping"},
        {"type": 2, "data": {}},
        {"type": 3, "data": {"component_type": 2}},
        {"type": 5, "data": {}},
    ],
)
def test_invalid_payloads_raise(payload):
    with pytest.raises(InvalidInteractionPayload):
        classify(payload)
