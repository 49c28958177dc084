#!/usr/bin/env python3
"""lsystem_designer.py

An L-system turtle engine that turns a rewriting grammar into line segments.

Key features:
- Fixed command alphabet with numeric turn multipliers.
- Two evaluation strategies: materialize-then-walk (``produce``) and
  walk-while-expanding (``interpret``), with identical geometry.
- Depth-based step scaling (``<`` / ``>``) for self-similar figures.
- Narrow move_to/line_to sink interface; SVG output is one consumer of it.
- JSON grammar documents and a set of classic presets.

Run:
  python lsystem_designer.py render config.json output.svg
  python lsystem_designer.py produce config.json --iterations 2
  python lsystem_designer.py preset koch_island out.json
  python lsystem_designer.py --help
"""

from __future__ import annotations

import argparse
import enum
import json
import math
import os
import sys
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal, Protocol, cast

Point = tuple[float, float]


# -------------------------
# Errors / Validation
# -------------------------


class ConfigError(ValueError):
    pass


class ExpansionLimitError(RuntimeError):
    """A ceiling on expansion size, commands walked or turtle moves was exceeded."""


class RenderCancelled(Exception):
    pass


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigError(msg)


def _as_float(x: Any, path: str) -> float:
    _require(
        isinstance(x, (int, float)) and not isinstance(x, bool),
        f"{path} must be a number",
    )
    _require(math.isfinite(x), f"{path} must be finite")
    return float(x)


def _as_int(x: Any, path: str) -> int:
    _require(
        isinstance(x, int) and not isinstance(x, bool), f"{path} must be an integer"
    )
    return int(x)


def _as_str(x: Any, path: str) -> str:
    _require(isinstance(x, str), f"{path} must be a string")
    return cast(str, x)


def _as_bool(x: Any, path: str) -> bool:
    _require(isinstance(x, bool), f"{path} must be a boolean")
    return cast(bool, x)


def _as_dict(x: Any, path: str) -> dict[str, Any]:
    _require(isinstance(x, dict), f"{path} must be an object")
    return cast(dict[str, Any], x)


# -------------------------
# Grammar model
# -------------------------


@dataclass(frozen=True)
class Angle:
    """A plane angle stored in degrees.

    Zero points up (+Y); positive values rotate toward +X.
    """

    degrees: float = 0.0

    @classmethod
    def from_radians(cls, radians: float) -> Angle:
        return cls(math.degrees(radians))

    @property
    def radians(self) -> float:
        return math.radians(self.degrees)

    def __add__(self, other: Angle) -> Angle:
        return Angle(self.degrees + other.degrees)

    def __sub__(self, other: Angle) -> Angle:
        return Angle(self.degrees - other.degrees)

    def __neg__(self) -> Angle:
        return Angle(-self.degrees)

    def __mul__(self, scalar: float) -> Angle:
        return Angle(self.degrees * scalar)

    __rmul__ = __mul__


@dataclass(frozen=True)
class Grammar:
    """An L-system and the turtle parameters used to draw it.

    ``depth_scale`` should stay within (0, 1]; larger values make every nested
    level grow instead of shrink. This is not checked here.

    ``evaluation_depth`` bounds how many rule substitutions are applied. Growth
    is exponential in it: keep it at 6 or below for branching rules and below
    15 for simple ones.
    """

    axiom: str = "F"
    rules: Mapping[str, str] = field(default_factory=dict)
    initial_heading: Angle = Angle(0.0)
    step_length: float = 10.0
    turn_angle: Angle = Angle(90.0)
    depth_scale: float = 1.0
    evaluation_depth: int = 4

    def __post_init__(self) -> None:
        # read-only copy; the caller's dict may keep changing
        object.__setattr__(self, "rules", MappingProxyType(dict(self.rules)))

    def __hash__(self) -> int:
        return hash(
            (
                self.axiom,
                tuple(sorted(self.rules.items())),
                self.initial_heading,
                self.step_length,
                self.turn_angle,
                self.depth_scale,
                self.evaluation_depth,
            )
        )


# -------------------------
# Command alphabet
# -------------------------


class Token(enum.Enum):
    LETTER = "letter"
    TURN_RIGHT = "+"
    TURN_LEFT = "-"
    PUSH_STATE = "["
    POP_STATE = "]"
    PUSH_DEPTH = "<"
    POP_DEPTH = ">"
    DRAW = "|"
    DIGIT = "digit"


_SYMBOL_TOKENS: dict[str, Token] = {
    "+": Token.TURN_RIGHT,
    "-": Token.TURN_LEFT,
    "[": Token.PUSH_STATE,
    "]": Token.POP_STATE,
    "<": Token.PUSH_DEPTH,
    ">": Token.POP_DEPTH,
    "|": Token.DRAW,
}


def classify(ch: str) -> Token | None:
    """Classify one character, or return None if it carries no command."""
    if not ch.isascii():
        return None
    if ch.isalpha():
        return Token.LETTER
    if ch.isdigit():
        return Token.DIGIT
    return _SYMBOL_TOKENS.get(ch)


def tokenize(text: str) -> Iterator[tuple[Token, str]]:
    for ch in text:
        token = classify(ch)
        if token is not None:
            yield token, ch


# -------------------------
# Producer
# -------------------------


def produce(
    axiom: str,
    rules: Mapping[str, str],
    iterations: int,
    *,
    max_length: int | None = None,
) -> str:
    """Rewrite ``axiom`` ``iterations`` times and return the command string.

    Each substitution is wrapped in ``<...>`` so the materialized string carries
    the same scale depth the interpreter would apply while recursing. Pending
    turn multipliers are re-emitted verbatim in front of their ``+``/``-``;
    trailing digits with no turn after them are dropped.
    """
    text = axiom
    for _ in range(iterations):
        parts: list[str] = []
        length = 0
        multiplier = 0
        for token, ch in tokenize(text):
            if token is Token.DIGIT:
                multiplier = multiplier * 10 + int(ch)
                continue

            if token is Token.LETTER:
                replacement = rules.get(ch)
                if replacement is not None:
                    piece = f"<{replacement}>"
                elif ch in "Ff":
                    piece = "F"
                elif ch in "Gg":
                    piece = "G"
                else:
                    piece = ch
            elif token in (Token.TURN_RIGHT, Token.TURN_LEFT):
                piece = f"{multiplier}{ch}" if multiplier else ch
                multiplier = 0
            else:
                piece = ch

            parts.append(piece)
            length += len(piece)
            if max_length is not None and length > max_length:
                raise ExpansionLimitError(
                    f"expanded command string exceeds {max_length} characters"
                )
        text = "".join(parts)
    return text


# -------------------------
# Line sinks
# -------------------------


class LineSink(Protocol):
    def move_to(self, point: Point) -> None: ...

    def line_to(self, point: Point) -> None: ...


SinkCall = tuple[Literal["move_to", "line_to"], Point]


@dataclass
class RecordingSink:
    """Keeps every call in order; two renders compare equal by ``calls``."""

    calls: list[SinkCall] = field(default_factory=list)

    def move_to(self, point: Point) -> None:
        self.calls.append(("move_to", point))

    def line_to(self, point: Point) -> None:
        self.calls.append(("line_to", point))

    def segments(self) -> list[tuple[Point, Point]]:
        out: list[tuple[Point, Point]] = []
        pen: Point | None = None
        for op, p in self.calls:
            if op == "line_to" and pen is not None:
                out.append((pen, p))
            pen = p
        return out


@dataclass
class PolylineSink:
    """Collects the call stream into polylines for vector output."""

    _polylines: list[list[Point]] = field(default_factory=list)

    def move_to(self, point: Point) -> None:
        self._polylines.append([point])

    def line_to(self, point: Point) -> None:
        if not self._polylines:
            self._polylines.append([(0.0, 0.0)])
        cur = self._polylines[-1]
        if cur[-1] != point:
            cur.append(point)

    def polylines(self) -> list[list[Point]]:
        return [pl for pl in self._polylines if len(pl) >= 2]


# -------------------------
# Turtle
# -------------------------


class Turtle:
    """A pen-bearing cursor that reports its moves to a LineSink.

    It starts at the origin facing up (+Y) with the pen down. Branch state
    (``[``/``]``) and scale depth (``<``/``>``) are tracked independently.
    One instance belongs to exactly one render.
    """

    def __init__(self, sink: LineSink) -> None:
        self.sink = sink
        self.depth_scale = 1.0
        self.position: Point = (0.0, 0.0)
        self.heading = Angle(0.0)
        self.pen_is_down = True
        self.stack: list[tuple[Point, Angle]] = []
        self.scale_depth = 0
        self.moves = 0

    def set_heading(self, angle: Angle) -> None:
        self.heading = angle

    def set_depth_scale(self, scale: float) -> None:
        self.depth_scale = scale

    def forward(self, distance: float) -> None:
        d = distance * self.depth_scale**self.scale_depth
        rad = self.heading.radians
        x, y = self.position
        nxt = (x + d * math.sin(rad), y + d * math.cos(rad))
        if self.pen_is_down:
            self.sink.line_to(nxt)
        else:
            self.sink.move_to(nxt)
        self.position = nxt
        self.moves += 1

    def turn(self, angle: Angle) -> None:
        self.heading = self.heading + angle

    def pen_up(self) -> None:
        self.pen_is_down = False

    def pen_down(self) -> None:
        self.pen_is_down = True

    def save_state(self) -> None:
        self.stack.append((self.position, self.heading))

    def restore_state(self) -> None:
        # An unmatched "]" leaves the turtle where it is.
        if not self.stack:
            return
        self.position, self.heading = self.stack.pop()
        self.sink.move_to(self.position)

    def enter_scale(self) -> None:
        self.scale_depth += 1

    def exit_scale(self) -> None:
        self.scale_depth -= 1


# -------------------------
# Interpreter
# -------------------------


Strategy = Literal["interpret", "produce"]

# frames kept free for the caller and the sink below the deepest walk
_RECURSION_HEADROOM = 200


def max_interpret_depth() -> int:
    return max(sys.getrecursionlimit() - _RECURSION_HEADROOM, 0)


class Interpreter:
    """Walks command strings against a turtle, expanding rules on demand.

    A ruled letter met at recursion depth below ``recursion_limit`` is
    replaced by a nested walk of its rule body, bracketed by one scale-depth
    level. At the limit, letters fall back to their terminal meaning.
    """

    def __init__(
        self,
        grammar: Grammar,
        turtle: Turtle,
        *,
        recursion_limit: int,
        cancel: Callable[[], bool] | None = None,
        max_moves: int | None = None,
        max_steps: int | None = None,
    ) -> None:
        self.grammar = grammar
        self.turtle = turtle
        self.recursion_limit = recursion_limit
        self.cancel = cancel
        self.max_moves = max_moves
        self.max_steps = max_steps
        self.steps = 0

    def walk(self, rule: str, depth: int = 0) -> None:
        g = self.grammar
        t = self.turtle
        multiplier = 0
        for token, ch in tokenize(rule):
            if self.cancel is not None and self.cancel():
                raise RenderCancelled("render cancelled by caller")
            self.steps += 1
            if self.max_steps is not None and self.steps > self.max_steps:
                raise ExpansionLimitError(f"render exceeds {self.max_steps} commands")

            if token is Token.LETTER:
                replacement = g.rules.get(ch)
                if depth < self.recursion_limit and replacement is not None:
                    t.enter_scale()
                    self.walk(replacement, depth + 1)
                    t.exit_scale()
                elif ch in "Ff":
                    t.pen_down()
                    self._forward()
                elif ch in "Gg":
                    t.pen_up()
                    self._forward()
                # other letters only name rules
            elif token is Token.TURN_RIGHT:
                t.turn(g.turn_angle * (multiplier or 1))
                multiplier = 0
            elif token is Token.TURN_LEFT:
                t.turn(g.turn_angle * -(multiplier or 1))
                multiplier = 0
            elif token is Token.PUSH_STATE:
                t.save_state()
            elif token is Token.POP_STATE:
                t.restore_state()
            elif token is Token.PUSH_DEPTH:
                t.enter_scale()
            elif token is Token.POP_DEPTH:
                t.exit_scale()
            elif token is Token.DRAW:
                t.pen_down()
                self._forward()
            elif token is Token.DIGIT:
                multiplier = multiplier * 10 + int(ch)

    def _forward(self) -> None:
        self.turtle.forward(self.grammar.step_length)
        if self.max_moves is not None and self.turtle.moves > self.max_moves:
            raise ExpansionLimitError(f"render exceeds {self.max_moves} turtle moves")


def render(
    grammar: Grammar,
    sink: LineSink,
    *,
    strategy: Strategy = "interpret",
    cancel: Callable[[], bool] | None = None,
    max_moves: int | None = None,
    max_steps: int | None = None,
    max_length: int | None = None,
) -> Turtle:
    """Draw ``grammar`` into ``sink`` and return the finished turtle.

    ``strategy="interpret"`` expands rules while walking, up to
    ``grammar.evaluation_depth`` levels. ``strategy="produce"`` materializes
    the same number of rewrite iterations first and walks the flat result.
    Both emit the same geometry.

    ``cancel`` is polled before every command; returning True raises
    RenderCancelled. ``max_moves`` (forward moves), ``max_steps`` (commands
    walked, drawing or not) and ``max_length`` (produced string length) turn
    runaway growth into ExpansionLimitError. An evaluation depth too deep for
    the interpreter's recursion also raises ExpansionLimitError, before
    anything is drawn.
    """
    _require(
        strategy in ("interpret", "produce"),
        f"strategy must be 'interpret' or 'produce'; got {strategy!r}",
    )

    if strategy == "interpret" and grammar.evaluation_depth > max_interpret_depth():
        raise ExpansionLimitError(
            f"evaluationDepth {grammar.evaluation_depth} exceeds the interpreter's "
            f"recursion bound of {max_interpret_depth()}; use the produce strategy"
        )

    turtle = Turtle(sink)
    turtle.set_heading(grammar.initial_heading)
    turtle.set_depth_scale(grammar.depth_scale)
    sink.move_to(turtle.position)

    if strategy == "produce":
        text = produce(
            grammar.axiom,
            grammar.rules,
            grammar.evaluation_depth,
            max_length=max_length,
        )
        limit = 0
    else:
        text = grammar.axiom
        limit = grammar.evaluation_depth

    Interpreter(
        grammar,
        turtle,
        recursion_limit=limit,
        cancel=cancel,
        max_moves=max_moves,
        max_steps=max_steps,
    ).walk(text)
    return turtle


# -------------------------
# SVG writing
# -------------------------


@dataclass(frozen=True)
class SvgStyle:
    stroke: str = "#000"
    stroke_width: float = 1.0
    fill: str = "none"
    stroke_linecap: str = "round"
    stroke_linejoin: str = "round"


@dataclass(frozen=True)
class SvgOptions:
    margin: float = 10.0
    precision: int = 3
    # turtle +Y is up; SVG +Y is down
    flip_y: bool = True
    width: float | None = None
    height: float | None = None
    style: SvgStyle = SvgStyle()
    background: str | None = None


def _ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)) or ".", exist_ok=True)


def compute_bounds(polylines: list[list[Point]]) -> tuple[float, float, float, float]:
    _require(len(polylines) > 0, "No drawable geometry produced.")
    xs = [x for pl in polylines for x, _ in pl]
    ys = [y for pl in polylines for _, y in pl]
    return (min(xs), min(ys), max(xs), max(ys))


def _fmt(x: float, precision: int) -> str:
    if not x:
        x = 0.0
    s = f"{x:.{precision}f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    if s == "-0":
        s = "0"
    return s or "0"


def _escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def write_svg(
    polylines: list[list[Point]],
    *,
    out_path: str,
    options: SvgOptions = SvgOptions(),
    title: str | None = None,
) -> None:
    minx, miny, maxx, maxy = compute_bounds(polylines)
    m = options.margin
    minx, miny, maxx, maxy = minx - m, miny - m, maxx + m, maxy + m
    w = maxx - minx
    h = maxy - miny
    _require(
        w > 0 and h > 0,
        "Degenerate bounds after margin (width or height is zero). "
        "Set svg.margin > 0 to render collinear or single-point geometry.",
    )

    p = options.precision
    size_attrs = ""
    if options.width:
        size_attrs += f' width="{_fmt(options.width, p)}"'
    if options.height:
        size_attrs += f' height="{_fmt(options.height, p)}"'
    view_box = " ".join(_fmt(v, p) for v in (minx, miny, w, h))

    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<svg xmlns="http://www.w3.org/2000/svg" version="1.1" '
        f'viewBox="{view_box}"{size_attrs}>',
    ]
    if title:
        lines.append(f"  <title>{_escape(title)}</title>")
    if options.background and options.background.lower() != "none":
        lines.append(
            f'  <rect x="{_fmt(minx, p)}" y="{_fmt(miny, p)}" '
            f'width="{_fmt(w, p)}" height="{_fmt(h, p)}" '
            f'fill="{options.background}" />'
        )

    st = options.style
    style_attr = (
        f'stroke="{st.stroke}" stroke-width="{_fmt(st.stroke_width, p)}" '
        f'fill="{st.fill}" stroke-linecap="{st.stroke_linecap}" '
        f'stroke-linejoin="{st.stroke_linejoin}"'
    )

    indent = "  "
    if options.flip_y:
        # mirror about the horizontal center of the viewBox
        lines.append(
            f'  <g transform="translate(0,{_fmt(miny + maxy, p)}) scale(1,-1)">'
        )
        indent = "    "
    for pl in polylines:
        pts = " ".join(f"{_fmt(x, p)},{_fmt(y, p)}" for x, y in pl)
        lines.append(f'{indent}<polyline points="{pts}" {style_attr} />')
    if options.flip_y:
        lines.append("  </g>")
    lines.append("</svg>")

    _ensure_parent_dir(out_path)
    with open(out_path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))
        f.write("\n")


# -------------------------
# Config parsing
# -------------------------


@dataclass(frozen=True)
class RenderConfig:
    name: str
    grammar: Grammar
    svg: SvgOptions


def parse_grammar(obj: dict[str, Any]) -> Grammar:
    obj = _as_dict(obj, "root")
    defaults = Grammar()

    _require("axiom" in obj, "axiom is required")
    axiom = _as_str(obj["axiom"], "axiom")

    rules_obj = _as_dict(obj.get("rules", {}), "rules")
    rules: dict[str, str] = {}
    for k, v in rules_obj.items():
        _require(len(k) == 1, "rules keys must be single-character strings")
        rules[k] = _as_str(v, f"rules['{k}']")

    initial_heading = _as_float(
        obj.get("initialHeading", defaults.initial_heading.degrees), "initialHeading"
    )
    step_length = _as_float(obj.get("stepLength", defaults.step_length), "stepLength")
    _require(step_length > 0, "stepLength must be > 0")
    turn_angle = _as_float(
        obj.get("turnAngle", defaults.turn_angle.degrees), "turnAngle"
    )
    depth_scale = _as_float(obj.get("depthScale", defaults.depth_scale), "depthScale")
    _require(depth_scale > 0, "depthScale must be > 0")
    evaluation_depth = _as_int(
        obj.get("evaluationDepth", defaults.evaluation_depth), "evaluationDepth"
    )
    _require(evaluation_depth >= 0, "evaluationDepth must be >= 0")

    return Grammar(
        axiom=axiom,
        rules=rules,
        initial_heading=Angle(initial_heading),
        step_length=step_length,
        turn_angle=Angle(turn_angle),
        depth_scale=depth_scale,
        evaluation_depth=evaluation_depth,
    )


def grammar_to_dict(grammar: Grammar) -> dict[str, Any]:
    return {
        "axiom": grammar.axiom,
        "rules": dict(grammar.rules),
        "initialHeading": grammar.initial_heading.degrees,
        "stepLength": grammar.step_length,
        "turnAngle": grammar.turn_angle.degrees,
        "depthScale": grammar.depth_scale,
        "evaluationDepth": grammar.evaluation_depth,
    }


def parse_svg_options(obj: dict[str, Any]) -> SvgOptions:
    svg = _as_dict(obj, "svg")
    defaults = SvgOptions()

    margin = _as_float(svg.get("margin", defaults.margin), "svg.margin")
    precision = _as_int(svg.get("precision", defaults.precision), "svg.precision")
    _require(0 <= precision <= 10, "svg.precision must be between 0 and 10")
    flip_y = _as_bool(svg.get("flip_y", defaults.flip_y), "svg.flip_y")

    width = svg.get("width")
    if width is not None:
        width = _as_float(width, "svg.width")
        _require(width > 0, "svg.width must be > 0")
    height = svg.get("height")
    if height is not None:
        height = _as_float(height, "svg.height")
        _require(height > 0, "svg.height must be > 0")

    style_obj = _as_dict(svg.get("style", {}), "svg.style")
    base = defaults.style
    style = SvgStyle(
        stroke=_as_str(style_obj.get("stroke", base.stroke), "svg.style.stroke"),
        stroke_width=_as_float(
            style_obj.get("stroke_width", base.stroke_width), "svg.style.stroke_width"
        ),
        fill=_as_str(style_obj.get("fill", base.fill), "svg.style.fill"),
        stroke_linecap=_as_str(
            style_obj.get("stroke_linecap", base.stroke_linecap),
            "svg.style.stroke_linecap",
        ),
        stroke_linejoin=_as_str(
            style_obj.get("stroke_linejoin", base.stroke_linejoin),
            "svg.style.stroke_linejoin",
        ),
    )

    background = svg.get("background")
    if background is not None:
        background = _as_str(background, "svg.background")

    return SvgOptions(
        margin=margin,
        precision=precision,
        flip_y=flip_y,
        width=width,
        height=height,
        style=style,
        background=background,
    )


def parse_config(obj: dict[str, Any]) -> RenderConfig:
    obj = _as_dict(obj, "root")
    return RenderConfig(
        name=_as_str(obj.get("name", "L-System"), "name"),
        grammar=parse_grammar(obj),
        svg=parse_svg_options(obj.get("svg", {})),
    )


def load_json(path: str) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        try:
            return cast(dict[str, Any], json.load(f))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e


def dump_json(obj: dict[str, Any], path: str) -> None:
    _ensure_parent_dir(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)
        f.write("\n")


# -------------------------
# Presets
# -------------------------


PRESETS: dict[str, Grammar] = {
    "sierpinski_gasket": Grammar(
        axiom="F--F--F",
        rules={"F": "F--F--F--GG", "G": "GG"},
        initial_heading=Angle(90),
        turn_angle=Angle(60),
        evaluation_depth=4,
    ),
    "koch_island": Grammar(
        axiom="F++F++F",
        rules={"F": "F-F++F-F"},
        initial_heading=Angle(30),
        turn_angle=Angle(60),
    ),
    "bent_big_h": Grammar(
        axiom="[F]--F",
        rules={"F": "|[+F][-F]"},
        turn_angle=Angle(80),
        depth_scale=0.65,
    ),
    "dragon_curve": Grammar(
        axiom="F",
        rules={"F": "[+F][+G--G4-F]", "G": "-G++G-"},
        initial_heading=Angle(90),
        turn_angle=Angle(45),
        evaluation_depth=12,
    ),
    "sierpinski_maze": Grammar(
        axiom="F",
        rules={"F": "[GF][+G3-F][G+G+F]", "G": "GG"},
        initial_heading=Angle(30),
        turn_angle=Angle(60),
    ),
    "sierpinski_snowflake": Grammar(
        axiom="F4-F4-F4-F4-F",
        rules={"F": "F4-F4-F10-F++F4-F"},
        initial_heading=Angle(18),
        turn_angle=Angle(18),
    ),
    "penrose_tile": Grammar(
        axiom="[X]++[X]++[X]++[X]++[X]",
        rules={
            "W": "YF++ZF4-XF[-YF4-WF]++",
            "X": "+YF--ZF[3-WF--XF]+",
            "Y": "-WF++XF[+++YF++ZF]-",
            "Z": "--YF++++WF[+ZF++++XF]--XF",
            "F": "",
        },
        turn_angle=Angle(36),
    ),
    "quadric_koch_island": Grammar(
        axiom="F-F-F-F",
        rules={"F": "F-F+F+FF-F-F+F"},
    ),
    "tree_2": Grammar(
        axiom="F",
        rules={"F": "|[5+F][7-F]-|[4+F][6-F]-|[3+F][5-F]-|F"},
        turn_angle=Angle(8),
        depth_scale=0.4,
    ),
}

DEFAULT_PRESET = "sierpinski_gasket"


# -------------------------
# CLI / Help
# -------------------------

HELP_EPILOG = r"""
INPUT JSON SYNTAX (render, produce)

A document describes one L-system plus optional SVG output settings.

  name: string (optional)
      Written into the SVG <title>.

  axiom: string (required)
      The command string drawn at evaluation depth 0.

  rules: object mapping single character -> string (optional)
      Production rules. A letter with a rule is expanded; without one,
      F draws, G moves, and any other letter does nothing.

  initialHeading: number degrees (default 0)
      0 points up (+Y); positive angles rotate toward +X.

  stepLength: number > 0 (default 10)
      Distance covered by F, G and |.

  turnAngle: number degrees (default 90)
      Base rotation for + (right) and - (left).

  depthScale: number in (0, 1] (default 1)
      Step length is multiplied by depthScale once per scale-depth level.

  evaluationDepth: integer >= 0 (default 4)
      Number of rule substitution levels. Growth is exponential: keep it
      <= 6 for branching rules, < 15 for simple ones.

Command alphabet

  F f   draw forward              +     turn right by turnAngle
  G g   move forward (pen up)     -     turn left by turnAngle
  |     draw forward              [ ]   save / restore position and heading
  0-9   multiplier for next +/-   < >   enter / leave a scale-depth level

  Every rule substitution also enters one scale-depth level, so
  "4-" turns left by 4 * turnAngle and depthScale shrinks nested rules.

SVG options (svg object, optional)

  margin (10), precision 0..10 (3), flip_y (true), width, height,
  background, style.{stroke, stroke_width, fill, stroke_linecap,
  stroke_linejoin}

Example (Koch island):

    {
      "axiom": "F++F++F",
      "rules": {"F": "F-F++F-F"},
      "initialHeading": 30,
      "turnAngle": 60,
      "evaluationDepth": 4
    }
"""


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="lsystem_designer.py",
        description="L-system turtle renderer that outputs SVG.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=HELP_EPILOG,
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    pr = sub.add_parser("render", help="Render an L-system JSON document to SVG.")
    pr.add_argument("config", help="Path to the input JSON document.")
    pr.add_argument("output", help="Path to write the SVG output.")
    pr.add_argument(
        "--strategy",
        choices=["interpret", "produce"],
        default="interpret",
        help=(
            "interpret: expand rules while drawing (default). "
            "produce: build the full command string first."
        ),
    )
    pr.add_argument(
        "--max-moves",
        type=int,
        default=None,
        help="Fail instead of drawing more than this many turtle moves.",
    )
    pr.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Fail instead of walking more than this many commands.",
    )
    pr.add_argument(
        "--max-length",
        type=int,
        default=None,
        help="With --strategy produce, fail on a longer expanded string.",
    )

    pp = sub.add_parser(
        "produce", help="Print the fully expanded command string of a document."
    )
    pp.add_argument("config", help="Path to the input JSON document.")
    pp.add_argument(
        "--iterations",
        type=int,
        default=None,
        help="Rewrite iterations (default: the document's evaluationDepth).",
    )
    pp.add_argument(
        "--max-length",
        type=int,
        default=None,
        help="Fail instead of building a string longer than this.",
    )

    pg = sub.add_parser("preset", help="Write a built-in L-system as a JSON document.")
    pg.add_argument("name", choices=sorted(PRESETS), help="Preset name.")
    pg.add_argument("output", help="Where to write the JSON document.")

    sub.add_parser("presets", help="List the built-in L-systems.")

    return p


# -------------------------
# Commands
# -------------------------


def cmd_render(
    config_path: str,
    output_path: str,
    strategy: Strategy,
    max_moves: int | None = None,
    max_steps: int | None = None,
    max_length: int | None = None,
) -> None:
    cfg = parse_config(load_json(config_path))
    sink = PolylineSink()
    render(
        cfg.grammar,
        sink,
        strategy=strategy,
        max_moves=max_moves,
        max_steps=max_steps,
        max_length=max_length,
    )
    write_svg(sink.polylines(), out_path=output_path, options=cfg.svg, title=cfg.name)


def cmd_produce(
    config_path: str, iterations: int | None, max_length: int | None
) -> None:
    grammar = parse_config(load_json(config_path)).grammar
    if iterations is None:
        iterations = grammar.evaluation_depth
    _require(iterations >= 0, "--iterations must be >= 0")
    print(produce(grammar.axiom, grammar.rules, iterations, max_length=max_length))


def cmd_preset(name: str, output_path: str) -> None:
    doc = {"name": name, **grammar_to_dict(PRESETS[name])}
    dump_json(doc, output_path)


def cmd_presets() -> None:
    for name in sorted(PRESETS):
        marker = " (default)" if name == DEFAULT_PRESET else ""
        print(f"{name}{marker}")


def main(argv: list[str] | None = None) -> int:
    ap = build_argparser()
    args = ap.parse_args(argv)

    try:
        if args.cmd == "render":
            cmd_render(
                args.config,
                args.output,
                cast(Strategy, args.strategy),
                args.max_moves,
                args.max_steps,
                args.max_length,
            )
        elif args.cmd == "produce":
            cmd_produce(args.config, args.iterations, args.max_length)
        elif args.cmd == "preset":
            cmd_preset(args.name, args.output)
        elif args.cmd == "presets":
            cmd_presets()
        else:
            raise AssertionError("unreachable")
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2
    except ExpansionLimitError as e:
        print(f"Limit error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"File error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
