from __future__ import annotations

import asyncio

import pandas as pd
import pytest

from actor_store import ActorStore, frame, load_actor_store, parse_overrides
from errors import ActorNotFound


def test_find_skill_is_exact_and_case_sensitive(store) -> None:
    skill = store.find_skill("solo-1", "Stealth")
    assert skill is not None
    assert (skill.name, skill.stat, skill.level) == ("Stealth", "dex", 4)
    assert store.find_skill("solo-1", "stealth") is None
    assert store.find_skill("solo-1", "Persuasion") is None


def test_find_skill_ignores_non_skill_items(store) -> None:
    assert store.find_skill("solo-1", "Mantis Blades") is None
    assert store.skill_names("solo-1") == ["Athletics", "Stealth"]


def test_all_skill_names_distinct_and_sorted(store) -> None:
    assert store.all_skill_names() == ["Athletics", "Basic Tech", "First Aid", "Stealth"]


def test_attribute_lookup_case_insensitive_and_defaults_to_zero(store) -> None:
    assert store.attribute_value("solo-1", "dex") == 6
    assert store.attribute_value("solo-1", "REF") == 8
    assert store.attribute_value("solo-1", "EMP") == 0
    assert store.attribute_value("solo-1", "nonsense") == 0


def test_actor_record(store) -> None:
    actor = store.get_actor("solo-1")
    assert actor.name == "Rook"
    assert actor.luck == 3
    assert actor.wound_state == "notWounded"
    assert actor.overrides == {"stealth": 1}
    assert actor.stats["REF"] == 8
    assert store.get_actor("nobody") is None


def test_missing_actor_raises_on_required_reads(store) -> None:
    with pytest.raises(ActorNotFound):
        store.luck_balance("nobody")
    with pytest.raises(ActorNotFound):
        store.wound_state("nobody")


def test_override_bonus_lookup(store) -> None:
    assert store.override_bonus("solo-1", "Stealth") == 1
    assert store.override_bonus("solo-1", "Athletics") == 0
    assert store.override_bonus("tech-2", "Basic Tech") == 0


def test_parse_overrides_skips_malformed_parts() -> None:
    bonuses, warnings = parse_overrides("Stealth=+1; Handgun: -2; nonsense; Brawling=x", "a-1")
    assert bonuses == {"stealth": 1, "handgun": -2}
    assert len(warnings) == 2


def test_set_luck_balance_compare_and_swap(store) -> None:
    assert asyncio.run(store.set_luck_balance("solo-1", 2, expected=3)) is True
    assert store.luck_balance("solo-1") == 2
    assert asyncio.run(store.set_luck_balance("solo-1", 0, expected=3)) is False
    assert store.luck_balance("solo-1") == 2


def test_stale_compare_and_swap_fails_even_when_value_already_matches(store) -> None:
    # stored 3, expected 2: the write must not apply even though 3 == new_value
    assert asyncio.run(store.set_luck_balance("solo-1", 3, expected=2)) is False
    assert store.luck_balance("solo-1") == 3


def test_set_luck_balance_rejects_negative_and_unknown(store) -> None:
    assert asyncio.run(store.set_luck_balance("solo-1", -1)) is False
    assert asyncio.run(store.set_luck_balance("nobody", 1)) is False


def test_duplicate_actor_ids_keep_first() -> None:
    actors = frame([
        {"Actor_Id": "a-1", "Name": "First", "LUCK": 2},
        {"Actor_Id": "a-1", "Name": "Second", "LUCK": 9},
    ], "actors.tsv")
    s = ActorStore(actors, frame([], "skills.tsv"))
    try:
        assert s.get_actor("a-1").name == "First"
        assert any("Duplicate actor id" in w for w in s.schema_warnings)
    finally:
        s.close()


def test_load_from_tsv_files(write_tables) -> None:
    s = load_actor_store(str(write_tables))
    try:
        assert s.actor_ids() == ["ghost-4", "medic-3", "solo-1", "tech-2"]
        assert s.attribute_value("tech-2", "tech") == 7
        assert s.find_skill("medic-3", "First Aid").level == 4
        assert s.schema_warnings == []
    finally:
        s.close()


def test_schema_warnings_for_missing_files_and_columns(tmp_path) -> None:
    pd.DataFrame([{"Actor_Id": "x-1", "Name": "X", "Chrome": "lots"}]).to_csv(
        tmp_path / "actors.tsv", sep="\t", index=False
    )
    s = load_actor_store(str(tmp_path))
    try:
        assert any("Schema mismatch in 'actors.tsv'" in w for w in s.schema_warnings)
        assert "skills.tsv not found" in s.schema_warnings
        assert s.luck_balance("x-1") == 0
        assert s.skill_names("x-1") == []
    finally:
        s.close()
