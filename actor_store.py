"""
ACTOR STORE
-----------
Character sheet data the skill checks read from, loaded from TSVs:
- actors.tsv  (one row per character: stats, Luck, wound state, overrides)
- skills.tsv  (one row per skill item)

Tables are parsed with pandas and kept in an in-memory DuckDB database.
The only write is the Luck balance, done as a compare-and-swap update.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import duckdb
import pandas as pd

from errors import ActorNotFound
from modifier_ledger import override_bonus as lookup_override

logger = logging.getLogger("prompt_protocol.actor_store")

# --- SCHEMAS ---
STAT_KEYS = ["INT", "REF", "DEX", "TECH", "COOL", "WILL", "MOVE", "BODY", "EMP"]

EXPECTED_SCHEMAS = {
    "actors.tsv": ["Actor_Id", "Name", *STAT_KEYS, "LUCK", "Wound_State", "Overrides"],
    "skills.tsv": ["Actor_Id", "Name", "Type", "Stat", "Level"],
}

_OVERRIDE_PART = re.compile(r"^\s*(?P<skill>[^=:]+?)\s*[=:]\s*(?P<bonus>[+-]?\d+)\s*$")


@dataclass(frozen=True)
class SkillItem:
    name: str
    stat: str
    level: int = 0
    type: str = "skill"


@dataclass(frozen=True)
class Actor:
    actor_id: str
    name: str
    luck: int = 0
    wound_state: str = ""
    stats: Dict[str, int] = field(default_factory=dict)
    overrides: Dict[str, int] = field(default_factory=dict)


def validate_schema(filename: str, df: pd.DataFrame) -> List[str]:
    expected = EXPECTED_SCHEMAS.get(filename, [])
    found = list(df.columns)
    missing = [col for col in expected if col not in found]
    extra = [col for col in found if col not in expected]
    if missing or extra:
        warning = f"Schema mismatch in '{filename}': missing {missing}, extra {extra}"
        logger.warning(warning)
        return [warning]
    return []


def parse_overrides(raw: str, actor_id: str = "") -> Tuple[Dict[str, int], List[str]]:
    """'Stealth=+1; Handgun: -2' -> {'stealth': 1, 'handgun': -2}"""
    bonuses: Dict[str, int] = {}
    warnings: List[str] = []
    for part in str(raw or "").split(";"):
        if not part.strip():
            continue
        m = _OVERRIDE_PART.match(part)
        if not m:
            warning = f"Ignoring malformed override '{part.strip()}' for actor '{actor_id}'"
            logger.warning(warning)
            warnings.append(warning)
            continue
        bonuses[m.group("skill").casefold()] = int(m.group("bonus"))
    return bonuses, warnings


def _to_int(series: pd.Series) -> pd.Series:
    return pd.to_numeric(series, errors="coerce").fillna(0).astype(int)


class ActorStore:
    def __init__(self, actors: pd.DataFrame, skills: pd.DataFrame,
                 conn: Optional[duckdb.DuckDBPyConnection] = None):
        self.conn = conn or duckdb.connect(database=":memory:")
        self.schema_warnings: List[str] = []
        self._create_tables()
        self._load_actors(actors)
        self._load_skills(skills)

    # --- LOADING ---
    def _create_tables(self) -> None:
        for table in ("actors", "attributes", "skills", "overrides"):
            self.conn.execute(f"DROP TABLE IF EXISTS {table}")
        self.conn.execute("CREATE TABLE actors (actor_id VARCHAR, name VARCHAR, wound_state VARCHAR, luck INTEGER)")
        self.conn.execute("CREATE TABLE attributes (actor_id VARCHAR, stat VARCHAR, value INTEGER)")
        self.conn.execute("CREATE TABLE skills (actor_id VARCHAR, name VARCHAR, type VARCHAR, stat VARCHAR, level INTEGER)")
        self.conn.execute("CREATE TABLE overrides (actor_id VARCHAR, skill VARCHAR, bonus INTEGER)")

    def _insert(self, table: str, rows: List[tuple]) -> None:
        if not rows:
            return
        placeholders = ", ".join("?" for _ in rows[0])
        self.conn.executemany(f"INSERT INTO {table} VALUES ({placeholders})", rows)

    def _load_actors(self, df: pd.DataFrame) -> None:
        df = df.copy()
        for col in ("Actor_Id", "Name", "Wound_State", "Overrides"):
            if col not in df.columns:
                df[col] = ""
        df["Actor_Id"] = df["Actor_Id"].astype(str).str.strip()
        df = df[df["Actor_Id"] != ""].copy()
        dupes = df[df.duplicated("Actor_Id", keep="first")]
        for actor_id in dupes["Actor_Id"]:
            warning = f"Duplicate actor id '{actor_id}', keeping the first row"
            logger.warning(warning)
            self.schema_warnings.append(warning)
        df = df.drop_duplicates("Actor_Id", keep="first")
        df["LUCK"] = _to_int(df["LUCK"]).clip(lower=0) if "LUCK" in df.columns else 0

        self._insert("actors", [
            (str(r.Actor_Id), str(r.Name), str(r.Wound_State).strip(), int(r.LUCK))
            for r in df.itertuples(index=False)
        ])

        stat_cols = [c for c in STAT_KEYS if c in df.columns]
        if stat_cols:
            stats = df[["Actor_Id", *stat_cols]].copy()
            for col in stat_cols:
                stats[col] = _to_int(stats[col])
            long = stats.melt(id_vars="Actor_Id", var_name="stat", value_name="value")
            self._insert("attributes", [
                (str(a), str(s), int(v)) for a, s, v in long.itertuples(index=False, name=None)
            ])

        override_rows = []
        for actor_id, raw in zip(df["Actor_Id"], df["Overrides"]):
            bonuses, warnings = parse_overrides(raw, actor_id)
            self.schema_warnings.extend(warnings)
            override_rows.extend((actor_id, skill, bonus) for skill, bonus in bonuses.items())
        self._insert("overrides", override_rows)

    def _load_skills(self, df: pd.DataFrame) -> None:
        df = df.copy()
        for col in ("Actor_Id", "Name", "Type", "Stat"):
            if col not in df.columns:
                df[col] = ""
        df["Type"] = df["Type"].replace("", "skill")
        df["Level"] = _to_int(df["Level"]).clip(lower=0) if "Level" in df.columns else 0
        self._insert("skills", [
            (str(r.Actor_Id).strip(), str(r.Name).strip(), str(r.Type).strip().lower(),
             str(r.Stat).strip(), int(r.Level))
            for r in df.itertuples(index=False)
        ])

    # --- READ API ---
    def actor_ids(self) -> List[str]:
        return [row[0] for row in self.conn.execute("SELECT actor_id FROM actors ORDER BY actor_id").fetchall()]

    def summary(self) -> pd.DataFrame:
        return self.conn.execute(
            "SELECT actor_id, name, luck, wound_state FROM actors ORDER BY name"
        ).fetchdf()

    def get_actor(self, actor_id: str) -> Optional[Actor]:
        row = self.conn.execute(
            "SELECT actor_id, name, luck, wound_state FROM actors WHERE actor_id = ?", [actor_id]
        ).fetchone()
        if row is None:
            return None
        stats = dict(self.conn.execute(
            "SELECT stat, value FROM attributes WHERE actor_id = ?", [actor_id]
        ).fetchall())
        return Actor(
            actor_id=row[0], name=row[1], luck=row[2], wound_state=row[3] or "",
            stats=stats, overrides=self.overrides(actor_id),
        )

    def require_actor(self, actor_id: str) -> Actor:
        actor = self.get_actor(actor_id)
        if actor is None:
            raise ActorNotFound(actor_id)
        return actor

    def find_skill(self, actor_id: str, name: str) -> Optional[SkillItem]:
        # exact, case-sensitive name match on skill-type items only
        row = self.conn.execute(
            "SELECT name, stat, level, type FROM skills WHERE actor_id = ? AND name = ? AND type = 'skill' LIMIT 1",
            [actor_id, name],
        ).fetchone()
        if row is None:
            return None
        return SkillItem(name=row[0], stat=row[1], level=row[2], type=row[3])

    def skill_names(self, actor_id: str) -> List[str]:
        rows = self.conn.execute(
            "SELECT DISTINCT name FROM skills WHERE actor_id = ? AND type = 'skill' ORDER BY name", [actor_id]
        ).fetchall()
        return [r[0] for r in rows]

    def all_skill_names(self) -> List[str]:
        rows = self.conn.execute(
            "SELECT DISTINCT name FROM skills WHERE type = 'skill' ORDER BY name"
        ).fetchall()
        return [r[0] for r in rows]

    def attribute_value(self, actor_id: str, key: str) -> int:
        row = self.conn.execute(
            "SELECT value FROM attributes WHERE actor_id = ? AND stat = ?", [actor_id, str(key).upper()]
        ).fetchone()
        return row[0] if row else 0

    def wound_state(self, actor_id: str) -> str:
        return self.require_actor(actor_id).wound_state

    def luck_balance(self, actor_id: str) -> int:
        row = self.conn.execute("SELECT luck FROM actors WHERE actor_id = ?", [actor_id]).fetchone()
        if row is None:
            raise ActorNotFound(actor_id)
        return row[0]

    def overrides(self, actor_id: str) -> Dict[str, int]:
        return dict(self.conn.execute(
            "SELECT skill, bonus FROM overrides WHERE actor_id = ?", [actor_id]
        ).fetchall())

    def override_bonus(self, actor_id: str, skill_name: str) -> int:
        return lookup_override(self.overrides(actor_id), skill_name)

    # --- MUTATION API ---
    async def set_luck_balance(self, actor_id: str, new_value: int, expected: Optional[int] = None) -> bool:
        """Writes Luck; with `expected`, only if the stored value still matches.

        True only when the UPDATE touched a row.
        """
        if new_value < 0:
            return False
        try:
            if expected is None:
                row = self.conn.execute(
                    "UPDATE actors SET luck = ? WHERE actor_id = ? RETURNING luck", [new_value, actor_id]
                ).fetchone()
            else:
                row = self.conn.execute(
                    "UPDATE actors SET luck = ? WHERE actor_id = ? AND luck = ? RETURNING luck",
                    [new_value, actor_id, expected],
                ).fetchone()
        except duckdb.Error as e:
            logger.error(f"Luck write failed for {actor_id}: {e}")
            return False
        return row is not None

    def close(self) -> None:
        self.conn.close()


# --- LOAD FROM DISK ---
def read_table(path: str, filename: str) -> Tuple[pd.DataFrame, List[str]]:
    if not os.path.isfile(path):
        logger.warning(f"{filename} not found, skipping.")
        return pd.DataFrame(columns=EXPECTED_SCHEMAS.get(filename, [])), [f"{filename} not found"]
    logger.info(f"Loading {filename} into DuckDB and pandas")
    df = pd.read_csv(path, sep="\t", dtype=str).fillna("")
    df.columns = [c.strip() for c in df.columns]
    return df, validate_schema(filename, df)


def load_actor_store(data_dir: str, actors_file: str = "actors.tsv", skills_file: str = "skills.tsv") -> ActorStore:
    actors, actor_warnings = read_table(os.path.join(data_dir, actors_file), "actors.tsv")
    skills, skill_warnings = read_table(os.path.join(data_dir, skills_file), "skills.tsv")
    store = ActorStore(actors, skills)
    store.schema_warnings[:0] = actor_warnings + skill_warnings
    logger.info(f"Loaded {len(store.actor_ids())} actors from {data_dir}")
    return store


def frame(rows: Iterable[dict], filename: str) -> pd.DataFrame:
    """Builds a table with the expected columns from dict rows (fixtures, imports)."""
    return pd.DataFrame(list(rows), columns=EXPECTED_SCHEMAS[filename]).fillna("")
