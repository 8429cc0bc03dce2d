# SPDX-License-Identifier: MIT
"""
Network map: one row per reachable server, sortable and filterable.

    --sort  "ramFree,!moneyMax,reqHack,host"   ("!" prefix = descending)
    --where "rooted,reqHack<=200,!p"           (all terms must hold)
"""
from __future__ import annotations

import logging
import operator
from typing import Any, Callable, List, Optional

import pandas as pd

from netops.network.discovery import discover_with_depth, path_to_list
from netops.utils.formatting import format_num, format_ram, pad

log = logging.getLogger("NetworkMap")

COLUMNS = [
    "host", "depth", "purchased", "backdoor", "root", "reqHack", "ports", "growth",
    "ramMax", "ramUsed", "ramFree", "moneyMax", "moneyAvail", "moneyPct",
    "secMin", "secCur", "secDelta", "path",
]
SORT_FIELDS = [c for c in COLUMNS if c != "path"]
FILTER_ALIASES = {"rooted": "root", "bd": "backdoor", "p": "purchased"}
DEFAULT_SORT = "depth,host"

# Checked in this order so ">=" is not mistaken for ">".
_OPS = [
    (">=", operator.ge),
    ("<=", operator.le),
    ("!=", operator.ne),
    ("=", operator.eq),
    (">", operator.gt),
    ("<", operator.lt),
]


def build_rows(api, start: str = "home", max_depth: int = -1) -> pd.DataFrame:
    disc = discover_with_depth(api, start, max_depth)
    rows = []
    for h in disc.hosts:
        s = api.get_server(h)
        money_pct = s.money_available / s.money_max if s.money_max > 0 else 0.0
        # Display path drops both the start host and the server itself.
        path = path_to_list(disc.parent_by_host, h)[1:-1]
        rows.append({
            "host": h,
            "depth": disc.depth_by_host.get(h, -1),
            "purchased": bool(s.purchased_by_player),
            "backdoor": bool(s.backdoor_installed),
            "root": bool(s.has_admin_rights),
            "reqHack": int(s.required_hacking_skill),
            "ports": int(s.num_open_ports_required),
            "growth": float(s.server_growth),
            "ramMax": float(s.max_ram),
            "ramUsed": float(s.ram_used),
            "ramFree": max(0.0, s.max_ram - s.ram_used),
            "moneyMax": float(s.money_max),
            "moneyAvail": float(s.money_available),
            "moneyPct": money_pct,
            "secMin": float(s.min_difficulty),
            "secCur": float(s.hack_difficulty),
            "secDelta": float(s.hack_difficulty - s.min_difficulty),
            "path": " > ".join(path),
        })
    return pd.DataFrame(rows, columns=COLUMNS)


def parse_sort_spec(spec: str):
    """Return (columns, ascending flags); unknown fields sort by host."""
    tokens = [t.strip() for t in (spec or DEFAULT_SORT).split(",") if t.strip()]
    cols: List[str] = []
    asc: List[bool] = []
    for tok in tokens:
        desc = tok.startswith("!")
        name = tok[1:] if desc else tok
        if name not in SORT_FIELDS:
            log.debug("Unknown sort field %r; using host", name)
            name = "host"
        if name in cols:
            continue
        cols.append(name)
        asc.append(not desc)
    if not cols:
        cols, asc = ["host"], [True]
    return cols, asc


def sort_rows(df: pd.DataFrame, spec: str) -> pd.DataFrame:
    cols, asc = parse_sort_spec(spec)
    return df.sort_values(by=cols, ascending=asc, kind="mergesort").reset_index(drop=True)


def _coerce_literal(raw: str) -> Any:
    if raw == "true":
        return True
    if raw == "false":
        return False
    try:
        return float(raw)
    except ValueError:
        return raw


def _field(name: str) -> str:
    name = FILTER_ALIASES.get(name, name)
    return name if name in SORT_FIELDS else "host"


def parse_term(raw: str) -> Callable[[pd.DataFrame], pd.Series]:
    negate = raw.startswith("!")
    term = raw[1:].strip() if negate else raw

    for sym, fn in _OPS:
        if sym in term:
            left, right = (p.strip() for p in term.split(sym, 1))
            col = _field(left)
            value = _coerce_literal(right)

            def pred(df, col=col, fn=fn, value=value):
                series = df[col]
                if isinstance(value, bool):
                    return fn(series.astype(bool), value)
                if isinstance(value, float):
                    return fn(pd.to_numeric(series, errors="coerce").astype(float), value)
                return fn(series.astype(str), value)
            break
    else:
        col = _field(term)

        def pred(df, col=col):
            return df[col].astype(bool)

    if negate:
        return lambda df: ~pred(df)
    return pred


def filter_rows(df: pd.DataFrame, where: str) -> pd.DataFrame:
    terms = [t.strip() for t in (where or "").split(",") if t.strip()]
    if not terms or df.empty:
        return df
    mask = pd.Series(True, index=df.index)
    for t in terms:
        mask &= parse_term(t)(df).fillna(False).astype(bool)
    return df[mask]


def network_map(
    api,
    start: str = "home",
    max_depth: int = -1,
    sort: str = DEFAULT_SORT,
    where: str = "",
    limit: int = 0,
) -> pd.DataFrame:
    df = build_rows(api, start, max_depth)
    df = sort_rows(filter_rows(df, where), sort)
    if limit and limit > 0:
        df = df.head(limit)
    return df


HEADER = "  ".join([
    pad("HOST", 20), pad("D", 2), pad("P", 1), pad("BD", 2), pad("ROOT", 4),
    pad("REQ", 5), pad("PORT", 4), pad("RAM(U/F/M)", 17), pad("$ (A/M)", 22),
    pad("SEC(C/M)", 13), pad("GROW", 6),
])


def render_row(r) -> str:
    ram = f"{format_ram(r['ramUsed'])}/{format_ram(r['ramFree'])}/{format_ram(r['ramMax'])}"
    money = f"{format_num(r['moneyAvail'])}/{format_num(r['moneyMax'])}" if r["moneyMax"] > 0 else "-"
    sec = f"{r['secCur']:.1f}/{r['secMin']:.1f}"
    return "  ".join([
        pad(r["host"], 20),
        pad(str(int(r["depth"])), 2),
        pad("$" if r["purchased"] else " ", 1),
        pad("B" if r["backdoor"] else " ", 2),
        pad("R" if r["root"] else " ", 4),
        pad(str(int(r["reqHack"])), 5),
        pad(str(int(r["ports"])), 4),
        pad(ram, 17),
        pad(money, 22),
        pad(sec, 13),
        pad(str(round(r["growth"] or 0)), 6),
    ])


def render_map(df: pd.DataFrame, start: str = "home", sort: Optional[str] = None) -> List[str]:
    lines = [
        f"Network map from {start} ({len(df)} servers) | sort={sort or DEFAULT_SORT}",
        HEADER,
        "-" * len(HEADER),
    ]
    for _, r in df.iterrows():
        if r["ramMax"] > 0:
            lines.append(render_row(r))
    lines.append("Sort fields: " + ",".join(SORT_FIELDS))
    return lines
