"""Tests for typed values, message wire format and the surface fold."""

import json
from datetime import UTC, datetime
from enum import Enum

import pytest
from pydantic import BaseModel, ValidationError

from nightfall.protocol.messages import (
    ComponentEntry,
    ProtocolParseError,
    begin_rendering,
    component,
    data_update,
    delete_surface,
    dump_messages,
    parse_messages,
    surface_update,
)
from nightfall.protocol.programs import (
    ALL_SURFACES,
    DEFAULT_CLARIFY_CHOICES,
    program_discover,
    program_footprints,
    program_pocket,
    program_radio,
    program_sky,
    program_tonight_candidates,
    program_tonight_clarify,
    program_tonight_order,
    program_veil,
    program_whispers,
)
from nightfall.protocol.store import SurfaceStore
from nightfall.protocol.values import (
    BooleanValue,
    ListValue,
    MapValue,
    NullValue,
    NumberValue,
    StringValue,
    to_plain,
    to_value,
)
from nightfall.skills.models import CandidateItem


class Mood(str, Enum):
    CALM = "calm"


class Card(BaseModel):
    title: str
    image_ref: str | None = None


class TestTypedValues:
    def test_variants(self):
        assert isinstance(to_value(None), NullValue)
        assert isinstance(to_value(True), BooleanValue)
        assert isinstance(to_value(3), NumberValue)
        assert isinstance(to_value(0.5), NumberValue)
        assert isinstance(to_value("x"), StringValue)
        assert isinstance(to_value([1]), ListValue)
        assert isinstance(to_value({"a": 1}), MapValue)

    def test_bool_is_not_a_number(self):
        assert to_plain(to_value(False)) is False

    def test_models_enums_and_dates(self):
        assert to_plain(to_value(Card(title="t"))) == {"title": "t"}
        assert to_plain(to_value(Mood.CALM)) == "calm"
        ts = datetime(2026, 1, 10, 22, 30, tzinfo=UTC)
        assert to_plain(to_value(ts)) == "2026-01-10T22:30:00+00:00"

    def test_nested_map_keeps_key_order(self):
        plain = {"b": [1, {"c": None}], "a": "x"}
        assert list(to_plain(to_value(plain))) == ["b", "a"]
        assert to_plain(to_value(plain)) == plain

    def test_wire_form_is_single_key(self):
        msg = data_update("sky", {"sky": {"pressure": "Quiet", "n": 2}})
        wire = dump_messages([msg])[0]

        contents = wire["dataModelUpdate"]["contents"]
        assert contents[0]["key"] == "sky"
        value_map = contents[0]["value"]["valueMap"]
        assert value_map[0] == {"key": "pressure", "value": {"valueString": "Quiet"}}
        assert value_map[1] == {"key": "n", "value": {"valueNumber": 2}}


class TestMessageWire:
    def test_each_message_names_its_kind(self):
        messages = [
            surface_update("tonight", [component("root", "Box")]),
            data_update("tonight", {"ui": None}),
            begin_rendering("tonight"),
            delete_surface("tonight"),
        ]
        keys = [list(m) for m in dump_messages(messages)]
        assert keys == [["surfaceUpdate"], ["dataModelUpdate"], ["beginRendering"], ["deleteSurface"]]
        assert dump_messages(messages)[0]["surfaceUpdate"]["surfaceId"] == "tonight"

    def test_component_names_exactly_one_type(self):
        with pytest.raises(ValidationError):
            ComponentEntry.model_validate({"id": "x", "component": {"A": {}, "B": {}}})

    def test_parse_json_array(self):
        messages = [surface_update("sky", [component("root", "SkyAtmosphere")]), begin_rendering("sky")]
        text = json.dumps(dump_messages(messages))

        assert parse_messages(text) == messages

    def test_parse_jsonl_skips_blank_lines(self):
        lines = [json.dumps(m) for m in dump_messages([begin_rendering("a"), delete_surface("b")])]
        parsed = parse_messages("\n".join([lines[0], "", "  ", lines[1]]))
        assert [m.surface_id for m in parsed] == ["a", "b"]

    def test_parse_snake_case_keys(self):
        parsed = parse_messages('[{"begin_rendering": {"surface_id": "sky", "root": "root"}}]')
        assert parsed == [begin_rendering("sky")]

    def test_parse_empty(self):
        assert parse_messages("  \n ") == []

    def test_invalid_jsonl_line(self):
        with pytest.raises(ProtocolParseError, match="line 2"):
            parse_messages('{"deleteSurface": {"surfaceId": "a"}}\n{not json')

    def test_unknown_message_kind(self):
        with pytest.raises(ValidationError):
            parse_messages('[{"explode": {}}]')


class TestSurfaceStore:
    def test_fold_in_order(self, context):
        store = SurfaceStore()
        store.apply_all(program_tonight_order(context))

        state = store.get("tonight")
        assert state.root_id == "root"
        assert state.components["prompt"] == {
            "PromptBar": {
                "placeholder": "e.g. somewhere quiet to work...",
                "submitAction": {"name": "TONIGHT_SUBMIT_ORDER"},
            }
        }
        assert state.data_model["ui"] == {"stage": "order", "loading": False, "active_plan": "primary"}

    def test_surface_update_replaces_components(self, context):
        store = SurfaceStore()
        store.apply_all(program_tonight_order(context))
        store.apply_all(program_tonight_clarify(context, "quiet"))

        components = store.get("tonight").components
        assert "prompt" not in components
        assert "choiceList" in components

    def test_data_update_merges_keys(self):
        store = SurfaceStore()
        store.apply(data_update("radio", {"radio": {"playing": False}, "context": {}}))
        store.apply(data_update("radio", {"radio": {"playing": True}}))

        assert store.get("radio").data_model == {"radio": {"playing": True}, "context": {}}

    def test_delete_surface(self):
        store = SurfaceStore()
        store.apply(begin_rendering("veil"))
        store.apply(delete_surface("veil"))
        assert store.get("veil") is None

    def test_fold_is_idempotent(self, context):
        messages = [
            *program_sky(context),
            data_update("sky", {"sky": {"pressure": "Warm"}}),
            *program_pocket(context),
        ]
        store = SurfaceStore()
        store.apply_all(messages)
        first = store.snapshot()

        store.apply_all(messages)

        assert store.snapshot() == first


class TestPrograms:
    def test_every_program_is_structure_data_render(self, context):
        programs = [
            program_tonight_order(context),
            program_discover(context, []),
            program_sky(context),
            program_pocket(context),
            program_whispers(context),
            program_radio(context),
            program_veil(context),
            program_footprints(context),
        ]
        assert sorted(p[0].surface_id for p in programs) == sorted(ALL_SURFACES)
        for program in programs:
            assert [list(m)[0] for m in dump_messages(program)] == [
                "surfaceUpdate",
                "dataModelUpdate",
                "beginRendering",
            ]
            assert len({m.surface_id for m in program}) == 1

    def test_clarify_defaults(self, context):
        store = SurfaceStore()
        store.apply_all(program_tonight_clarify(context, "hmm"))
        assert store.get("tonight").data_model["tonight"]["choices"] == DEFAULT_CLARIFY_CHOICES

    def test_candidates_are_plain_data(self, context):
        store = SurfaceStore()
        store.apply_all(
            program_tonight_candidates(
                context,
                skill_title="Coffee oracle",
                order_text="",
                candidates=[CandidateItem(id="p1", title="Late cafe")],
            )
        )
        model = store.get("tonight").data_model
        assert model["candidate_pool"] == [{"id": "p1", "title": "Late cafe"}]
        assert model["ui"]["stage"] == "candidate"

    def test_discover_hero_is_first_skill(self, context):
        store = SurfaceStore()
        store.apply_all(program_discover(context, [{"id": "a"}, {"id": "b"}]))
        assert store.get("discover").data_model["discover"]["hero"] == {"id": "a"}
