"""Procedural math question generation, one curriculum band per level range.

Levels 1-10 are picture counting and addition, 11-35 arithmetic, 36-50
fractions through linear equations, 51-65 high-school algebra up to
multivariable calculus. Pools are deterministic per level: the same level
always yields the same set of questions.
"""

from __future__ import annotations

import random
from fractions import Fraction
from typing import Callable, Optional

from pixellearn.engine.questions import QuestionRecord, Subject

COUNTING_EMOJIS = ["🍎", "🍊", "🍋", "🍇", "🍓", "🐶", "🐱", "⭐", "🎈", "⚽"]

# (function, angle in degrees, exact value)
TRIG_VALUES: list[tuple[str, int, str]] = [
    ("sin", 0, "0"), ("sin", 30, "1/2"), ("sin", 45, "√2/2"),
    ("sin", 60, "√3/2"), ("sin", 90, "1"),
    ("cos", 0, "1"), ("cos", 30, "√3/2"), ("cos", 45, "√2/2"),
    ("cos", 60, "1/2"), ("cos", 90, "0"),
    ("tan", 0, "0"), ("tan", 30, "√3/3"), ("tan", 45, "1"), ("tan", 60, "√3"),
]


def unique_options(correct: int, variance: int, rng: random.Random) -> list[str]:
    """Four numeric options around ``correct``, alternating above and below."""
    options = {correct}
    attempts = 0
    while len(options) < 4 and attempts < 20:
        offset = (attempts % variance + 1) * (1 if attempts % 2 == 0 else -1)
        wrong = correct + offset
        if correct >= 0:
            wrong = max(0, wrong)
        options.add(wrong)
        attempts += 1
    result = [str(o) for o in sorted(options)]
    rng.shuffle(result)
    return result


def shuffled_options(correct: str, wrong: list[str], rng: random.Random) -> list[str]:
    options = [correct]
    for w in wrong:
        if w not in options:
            options.append(w)
        if len(options) == 4:
            break
    rng.shuffle(options)
    return options


def monomial(coef: int, power: int, var: str = "x") -> str:
    if power == 0:
        return str(coef)
    head = "" if coef == 1 else str(coef)
    if power == 1:
        return f"{head}{var}"
    return f"{head}{var}^{power}"


class _Builder:
    """Collects questions for one level, dropping duplicate prompts."""

    def __init__(self, level: int, rng: random.Random):
        self.level = level
        self.rng = rng
        self._seen: set[str] = set()
        self.items: list[tuple[str, list[str], str, str]] = []

    def add(self, text: str, options: list[str], correct: str, explanation: str) -> None:
        if text in self._seen or correct not in options:
            return
        self._seen.add(text)
        self.items.append((text, options, correct, explanation))

    def numeric(self, text: str, answer: int, variance: int, explanation: str) -> None:
        self.add(text, unique_options(answer, variance, self.rng), str(answer), explanation)

    def build(self, limit: int) -> list[QuestionRecord]:
        items = list(self.items)
        self.rng.shuffle(items)
        return [
            QuestionRecord(
                id=f"math-{self.level}-{i:03d}",
                subject=Subject.MATH,
                level=self.level,
                text=text,
                options=tuple(options),
                correct_index=options.index(correct),
                explanation=explanation,
            )
            for i, (text, options, correct, explanation) in enumerate(items[:limit])
        ]


def _counting(b: _Builder, max_count: int) -> None:
    for count in range(1, max_count + 1):
        for emoji in COUNTING_EMOJIS:
            picture = " ".join([emoji] * count)
            b.numeric(f"How many {emoji} are there?\n\n{picture}", count, 2,
                      f"There are {count} {emoji}")


def _picture_addition(b: _Builder, max_num: int) -> None:
    for a in range(1, max_num + 1):
        for n in range(1, max_num + 1):
            emoji = COUNTING_EMOJIS[(a + n) % len(COUNTING_EMOJIS)]
            b.numeric(f"{emoji * a} + {emoji * n} = ?", a + n, 3, f"{a} + {n} = {a + n}")


def _addition(b: _Builder) -> None:
    difficulty = b.level - 10
    for a in range(10, 10 + difficulty * 10 + 1):
        for n in range(1, 5 + difficulty * 5 + 1):
            b.numeric(f"What is {a} + {n}?", a + n, 5, f"{a} + {n} = {a + n}")
    if b.level >= 13:
        for a in range(5, 21, 3):
            for n in range(5, 16, 2):
                for c in range(1, 11, 3):
                    total = a + n + c
                    b.numeric(f"What is {a} + {n} + {c}?", total, 5,
                              f"{a} + {n} + {c} = {total}")


def _subtraction(b: _Builder) -> None:
    difficulty = b.level - 15
    for a in range(10, 10 + difficulty * 10 + 1):
        for n in range(1, min(a, 5 + difficulty * 5) + 1):
            b.numeric(f"What is {a} - {n}?", a - n, 4, f"{a} - {n} = {a - n}")


def _multiplication(b: _Builder) -> None:
    top = 4 + (b.level - 20) * 2
    for a in range(2, top + 1):
        for n in range(2, top + 1):
            b.numeric(f"What is {a} × {n}?", a * n, 4, f"{a} × {n} = {a * n}")


def _division(b: _Builder) -> None:
    difficulty = b.level - 25
    for divisor in range(2, 4 + difficulty):
        for quotient in range(2, 6 + difficulty * 2):
            dividend = divisor * quotient
            b.numeric(f"What is {dividend} ÷ {divisor}?", quotient, 3,
                      f"{dividend} ÷ {divisor} = {quotient}")


def _order_of_operations(b: _Builder) -> None:
    top = 3 + (b.level - 30)
    for a in range(1, top + 3):
        for n in range(2, top + 2):
            for c in range(2, top + 2):
                b.numeric(f"What is {a} + {n} × {c}?", a + n * c, 4,
                          f"Multiply first: {n} × {c} = {n * c}, then {a} + {n * c} = {a + n * c}")
                b.numeric(f"What is ({a} + {n}) × {c}?", (a + n) * c, 4,
                          f"Parentheses first: {a} + {n} = {a + n}, then {a + n} × {c} = {(a + n) * c}")


def _fractions(b: _Builder) -> None:
    for d in range(3, 4 + (b.level - 35) * 2):
        for x in range(1, d):
            for y in range(1, d):
                total = Fraction(x + y, d)
                wrong = [
                    str(Fraction(x + y, d * 2)),
                    str(Fraction(x * y, d)),
                    str(Fraction(x + y + 1, d)),
                    str(Fraction(abs(x - y) or 1, d)),
                ]
                b.add(f"What is {x}/{d} + {y}/{d}?",
                      shuffled_options(str(total), wrong, b.rng), str(total),
                      f"{x}/{d} + {y}/{d} = {x + y}/{d} = {total}")


def _decimals(b: _Builder) -> None:
    step = b.level - 40
    for a in range(11, 60, 4 + step):
        for n in range(3, 40, 5):
            x, y = a / 10, n / 10
            answer = f"{x + y:.1f}"
            wrong = [f"{x + y + 0.1:.1f}", f"{x + y - 0.1:.1f}", f"{x + y + 1:.1f}",
                     f"{abs(x + y - 1):.1f}"]
            b.add(f"What is {x:.1f} + {y:.1f}?", shuffled_options(answer, wrong, b.rng),
                  answer, f"{x:.1f} + {y:.1f} = {answer}")


def _percentages(b: _Builder) -> None:
    percents = [10, 20, 25, 50, 75] + ([5, 15, 40] if b.level >= 45 else [])
    for p in percents:
        for n in range(20, 420, 20):
            answer = p * n // 100
            if p * n % 100:
                continue
            b.numeric(f"What is {p}% of {n}?", answer, 5, f"{p}% of {n} = {p}/100 × {n} = {answer}")


def _linear_equations(b: _Builder) -> None:
    for a in range(2, b.level - 43):
        for x in range(-3 if b.level >= 49 else 1, 13):
            for c in (1, 4, 7, 10):
                rhs = a * x + c
                b.numeric(f"Solve for x: {a}x + {c} = {rhs}", x, 3,
                          f"{a}x = {rhs} - {c} = {rhs - c}, so x = {x}")


def _signed_term(coef: int, body: str) -> str:
    if coef == 0:
        return ""
    sign = "+" if coef > 0 else "-"
    magnitude = abs(coef)
    if body and magnitude == 1:
        return f" {sign} {body}"
    return f" {sign} {magnitude}{body}"


def _roots_text(a: int, c: int) -> str:
    lo, hi = sorted((a, c))
    return f"x = {lo} or x = {hi}"


def _quadratics(b: _Builder) -> None:
    roots = [r for r in range(-6, 7) if r != 0]
    for r1 in roots:
        for r2 in roots:
            if r2 <= r1:
                continue
            p, q = -(r1 + r2), r1 * r2
            text = f"Solve: x²{_signed_term(p, 'x')}{_signed_term(q, '')} = 0"
            answer = _roots_text(r1, r2)
            wrong = [_roots_text(-r1, -r2), _roots_text(-r1, r2), _roots_text(r1, -r2),
                     _roots_text(r1 + 1, r2 + 1)]
            b.add(text, shuffled_options(answer, wrong, b.rng), answer,
                  f"Factors: (x{_signed_term(-r1, '')})(x{_signed_term(-r2, '')}) = 0")


def _geometry(b: _Builder) -> None:
    for w in range(2, 6 + b.level - 55):
        for h in range(w + 1, 12):
            b.numeric(f"What is the area of a {w} by {h} rectangle?", w * h, 4,
                      f"Area = width × height = {w} × {h} = {w * h}")
            b.numeric(f"What is the perimeter of a {w} by {h} rectangle?", 2 * (w + h), 4,
                      f"Perimeter = 2 × ({w} + {h}) = {2 * (w + h)}")
    for base in range(2, 20, 2):
        for height in range(3, 10):
            area = base * height // 2
            b.numeric(f"A triangle has base {base} and height {height}. What is its area?",
                      area, 4, f"Area = ½ × {base} × {height} = {area}")


def _trigonometry(b: _Builder) -> None:
    values = sorted({v for _, _, v in TRIG_VALUES})
    for fn, angle, value in TRIG_VALUES:
        wrong = [v for v in values if v != value]
        b.rng.shuffle(wrong)
        b.add(f"What is {fn}({angle}°)?", shuffled_options(value, wrong, b.rng), value,
              f"{fn}({angle}°) = {value}")


def _derivatives(b: _Builder) -> None:
    for power in range(2, 4 + b.level - 60):
        for coef in range(1, 10):
            answer = monomial(coef * power, power - 1)
            wrong = [monomial(coef, power - 1), monomial(coef * power, power),
                     monomial(coef + power, power - 1), monomial(coef, power + 1)]
            b.add(f"What is d/dx of {monomial(coef, power)}?",
                  shuffled_options(answer, wrong, b.rng), answer,
                  f"Power rule: bring down {power} and subtract 1 from the exponent")


def _integrals(b: _Builder) -> None:
    for power in range(1, 6):
        for k in range(1, 8):
            coef = k * (power + 1)
            answer = f"{monomial(k, power + 1)} + C"
            wrong = [f"{monomial(coef, power + 1)} + C", f"{monomial(k, power)} + C",
                     f"{monomial(coef * power, power - 1)} + C",
                     f"{monomial(k + 1, power + 1)} + C"]
            b.add(f"What is ∫ {monomial(coef, power)} dx?",
                  shuffled_options(answer, wrong, b.rng), answer,
                  f"Raise the exponent to {power + 1} and divide by {power + 1}")


def _partial_derivatives(b: _Builder) -> None:
    for a in range(1, 8):
        for c in range(1, 8):
            f = f"{monomial(a, 2)}y + {c}y"
            answer = f"{2 * a}xy"
            wrong = [f"{a}xy", f"{monomial(a, 2)} + {c}", f"{2 * a}x", f"{2 * a}xy + {c}"]
            b.add(f"What is ∂f/∂x for f(x, y) = {f}?",
                  shuffled_options(answer, wrong, b.rng), answer,
                  f"Treat y as a constant: ∂/∂x({monomial(a, 2)}y) = {2 * a}xy, and {c}y drops out")


def _band(level: int) -> Callable[[_Builder], None]:
    if level <= 2:
        return lambda b: _counting(b, 5)
    if level <= 5:
        return lambda b: _counting(b, 10)
    if level <= 8:
        return lambda b: _picture_addition(b, 5)
    if level <= 10:
        return lambda b: _picture_addition(b, 10)
    bands: list[tuple[int, Callable[[_Builder], None]]] = [
        (15, _addition), (20, _subtraction), (25, _multiplication), (30, _division),
        (35, _order_of_operations), (40, _fractions), (43, _decimals),
        (46, _percentages), (50, _linear_equations), (54, _quadratics),
        (57, _geometry), (60, _trigonometry), (63, _derivatives), (64, _integrals),
    ]
    for upper, fn in bands:
        if level <= upper:
            return fn
    return _partial_derivatives


def generate_math_questions(
    level: int, limit: int = 100, rng: Optional[random.Random] = None
) -> list[QuestionRecord]:
    """Build the math pool for ``level``, at most ``limit`` questions."""
    builder = _Builder(level, rng or random.Random(f"math:{level}"))
    _band(level)(builder)
    return builder.build(limit)
