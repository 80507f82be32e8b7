"""
Nova Tutor v9.0 - Step Generator

Turns a classified problem into a StepSequence, one deterministic
algorithm per problem type:

    division            long division, one quotient/product/remainder cycle
                        per working value, bringing digits down
    addition / subtraction / multiplication
                        intro, one question, confirmation
    area / perimeter    rectangle with the two operands as sides
    word_problem        provisional "analyzing" steps, replaced once the
                        semantic extraction comes back
    anything else       the generic 7-step Socratic ladder

Every question carries a bilingual hint ladder (see steps.hint_for_attempt).
"""

import logging
from typing import Optional

from nova_tutor.content.curriculum import topic_name
from nova_tutor.tutor.board import (
    Clear, DrawStructuralLayout, HighlightRegion, WriteFinalAnswer,
    WriteProduct, WriteQuotientDigit, WriteRemainder,
)
from nova_tutor.tutor.steps import StepSequence, action, explanation, question

logger = logging.getLogger("nova.solver")

BROAD_OPERATION_KEYWORDS = ("sum", "rest", "div", "mul", "add", "sub")


# ─── Division ────────────────────────────────────────────────────────────────

def _quotient_question(step_id: int, divisor: int, working: int, q: int):
    hints_en = [f"Think: {divisor} times what gives close to {working}?"]
    hints_es = [f"Piensa: ¿{divisor} por cuánto da cerca de {working}?"]
    if q >= 1:
        trial = divisor * (q - 1)
        hints_en.append(f"Try: {divisor} × {q - 1} = {trial}")
        hints_es.append(f"Prueba: {divisor} × {q - 1} = {trial}")
    hints_en.append(f"The answer is {q}.")
    hints_es.append(f"La respuesta es {q}.")
    return question(
        step_id,
        f"How many times does {divisor} fit into {working}?",
        f"¿Cuántas veces cabe el {divisor} en {working}?",
        expected=q,
        hints_en=hints_en,
        hints_es=hints_es,
    )


def solve_division(dividend: int, divisor: int, style: str = "colombia") -> StepSequence:
    """Long division, digit chunk by digit chunk.

    The first working value is the leading two digits of the dividend (the
    whole dividend when it is that short). A leading digit smaller than the
    divisor is first confirmed with the learner as "doesn't fit".
    """
    steps = []

    def next_id() -> int:
        return len(steps) + 1

    if divisor == 0:
        steps.append(explanation(
            1,
            f"We can't divide {dividend} by 0. Dividing by zero has no answer.",
            f"No podemos dividir {dividend} entre 0. Dividir entre cero no tiene respuesta.",
        ))
        return StepSequence(steps)

    digits = str(dividend)
    steps.append(explanation(
        1,
        f"Let's divide {dividend} by {divisor} step by step.",
        f"Vamos a dividir {dividend} entre {divisor} paso a paso.",
    ))

    lead = int(digits[0])
    if lead < divisor and len(digits) > 1:
        steps.append(question(
            next_id(),
            f"Look at the first number: {lead}. Does {divisor} fit into {lead}? (Answer 0 if it doesn't)",
            f"Mira el primer número: {lead}. ¿El {divisor} cabe en {lead}? (Responde 0 si no cabe)",
            expected=0,
            hints_en=[f"Compare {lead} with {divisor}. Which is larger?",
                      f"{lead} is smaller than {divisor}, so it doesn't fit."],
            hints_es=[f"Compara {lead} con {divisor}. ¿Cuál es mayor?",
                      f"{lead} es menor que {divisor}, entonces no cabe."],
        ))
        steps.append(explanation(
            next_id(),
            f"Correct. Since {lead} < {divisor}, we take the first two digits: {digits[:2]}.",
            f"Correcto. Como {lead} < {divisor}, tomamos las dos primeras cifras: {digits[:2]}.",
        ))

    working = int(digits[:2])
    pos = min(2, len(digits))

    # Still too small: keep taking digits before the first cycle
    while working < divisor and pos < len(digits):
        working = working * 10 + int(digits[pos])
        pos += 1
        steps.append(explanation(
            next_id(),
            f"{divisor} still doesn't fit, so we take one more digit: {working}.",
            f"El {divisor} todavía no cabe, así que tomamos una cifra más: {working}.",
        ))

    cycle = 0
    while True:
        q = working // divisor
        product = q * divisor
        remainder = working - product

        steps.append(_quotient_question(next_id(), divisor, working, q))
        steps.append(action(
            next_id(),
            f"Perfect! {divisor} fits {q} times into {working}. We write {q}.",
            f"¡Perfecto! {divisor} cabe {q} veces en {working}. Escribimos {q}.",
            board=WriteQuotientDigit(q, cycle),
        ))
        steps.append(question(
            next_id(),
            f"Now multiply: What is {divisor} × {q}?",
            f"Ahora multiplica: ¿Cuánto es {divisor} × {q}?",
            expected=product,
            hints_en=[f"Remember the {divisor} times table.", f"{divisor} × {q} = {product}"],
            hints_es=[f"Recuerda la tabla del {divisor}.", f"{divisor} × {q} = {product}"],
        ))
        steps.append(action(
            next_id(),
            f"Correct. {divisor} × {q} = {product}. We write it below.",
            f"Correcto. {divisor} × {q} = {product}. Lo escribimos debajo.",
            board=WriteProduct(product),
        ))
        steps.append(question(
            next_id(),
            f"Now subtract: What is {working} - {product}?",
            f"Ahora resta: ¿Cuánto es {working} - {product}?",
            expected=remainder,
            hints_en=[f"Subtract from top to bottom: {working} - {product}",
                      f"{working} - {product} = {remainder}"],
            hints_es=[f"Resta de arriba hacia abajo: {working} - {product}",
                      f"{working} - {product} = {remainder}"],
        ))

        if pos >= len(digits):
            break

        brought = digits[pos]
        pos += 1
        working = remainder * 10 + int(brought)
        cycle += 1
        steps.append(explanation(
            next_id(),
            f"We bring down the {brought}. Now we have {working}.",
            f"Bajamos el {brought}. Ahora tenemos {working}.",
        ))

    quotient, final_remainder = divmod(dividend, divisor)
    if final_remainder == 0:
        steps.append(explanation(
            next_id(),
            f"Excellent! The remainder is 0. The division is exact. {dividend} ÷ {divisor} = {quotient}",
            f"¡Excelente! El residuo es 0. La división es exacta. {dividend} ÷ {divisor} = {quotient}",
        ))
    else:
        steps.append(explanation(
            next_id(),
            f"Good. The result is {quotient} with remainder {final_remainder}.",
            f"Bien. El resultado es {quotient} con residuo {final_remainder}.",
            board=WriteRemainder(final_remainder),
        ))

    logger.info(f"Division {dividend} ÷ {divisor}: {len(steps)} steps, {cycle + 1} cycles")
    return StepSequence(steps)


# ─── Single Operations ───────────────────────────────────────────────────────

def solve_addition(a: int, b: int) -> StepSequence:
    total = a + b
    return StepSequence([
        explanation(1, f"Let's add {a} + {b}.", f"Vamos a sumar {a} + {b}."),
        question(
            2,
            f"What is {a} plus {b}?",
            f"¿Cuánto es {a} más {b}?",
            expected=total,
            hints_en=[f"Add the numbers: {a} + {b}", f"The answer is {total}"],
            hints_es=[f"Suma los números: {a} + {b}", f"La respuesta es {total}"],
        ),
        explanation(3, f"Perfect! {a} + {b} = {total}", f"¡Perfecto! {a} + {b} = {total}",
                    board=WriteFinalAnswer(total)),
    ])


def solve_subtraction(a: int, b: int) -> StepSequence:
    difference = a - b
    return StepSequence([
        explanation(1, f"Let's subtract {a} - {b}.", f"Vamos a restar {a} - {b}."),
        question(
            2,
            f"What is {a} minus {b}?",
            f"¿Cuánto es {a} menos {b}?",
            expected=difference,
            hints_en=[f"Subtract: {a} - {b}", f"The answer is {difference}"],
            hints_es=[f"Resta: {a} - {b}", f"La respuesta es {difference}"],
        ),
        explanation(3, f"Excellent! {a} - {b} = {difference}", f"¡Excelente! {a} - {b} = {difference}",
                    board=WriteFinalAnswer(difference)),
    ])


def solve_multiplication(a: int, b: int) -> StepSequence:
    product = a * b
    return StepSequence([
        explanation(1, f"Let's multiply {a} × {b}.", f"Vamos a multiplicar {a} × {b}."),
        question(
            2,
            f"What is {a} times {b}?",
            f"¿Cuánto es {a} por {b}?",
            expected=product,
            hints_en=[f"Think of the {a} times table.", f"{a} × {b} = {product}"],
            hints_es=[f"Piensa en la tabla del {a}.", f"{a} × {b} = {product}"],
        ),
        explanation(3, f"Correct! {a} × {b} = {product}", f"¡Correcto! {a} × {b} = {product}",
                    board=WriteFinalAnswer(product)),
    ])


# ─── Geometry ────────────────────────────────────────────────────────────────

def solve_rectangle_area(length: int, width: int) -> StepSequence:
    area = length * width
    return StepSequence([
        explanation(
            1,
            f"Let's calculate the area of a rectangle {length} × {width}.",
            f"Vamos a calcular el área de un rectángulo de {length} × {width}.",
        ),
        question(
            2,
            f"Area is length × width. What is {length} × {width}?",
            f"El área es largo × ancho. ¿Cuánto es {length} × {width}?",
            expected=area,
            hints_en=[f"Multiply: {length} × {width}", f"The area is {area} square units"],
            hints_es=[f"Multiplica: {length} × {width}", f"El área es {area} unidades cuadradas"],
        ),
        explanation(
            3,
            f"Perfect! The area is {area} square units.",
            f"¡Perfecto! El área es {area} unidades cuadradas.",
            board=WriteFinalAnswer(area),
        ),
    ])


def solve_rectangle_perimeter(length: int, width: int) -> StepSequence:
    half = length + width
    perimeter = 2 * half
    return StepSequence([
        explanation(
            1,
            f"Let's calculate the perimeter of a rectangle {length} × {width}.",
            f"Vamos a calcular el perímetro de un rectángulo de {length} × {width}.",
        ),
        question(
            2,
            f"Perimeter is 2 × (length + width). What is {length} + {width}?",
            f"El perímetro es 2 × (largo + ancho). ¿Cuánto es {length} + {width}?",
            expected=half,
            hints_en=[f"Add: {length} + {width} = {half}"],
            hints_es=[f"Suma: {length} + {width} = {half}"],
        ),
        question(
            3,
            f"Now multiply by 2: What is 2 × {half}?",
            f"Ahora multiplica por 2: ¿Cuánto es 2 × {half}?",
            expected=perimeter,
            hints_en=[f"2 × {half} = {perimeter}"],
            hints_es=[f"2 × {half} = {perimeter}"],
        ),
        explanation(
            4,
            f"Excellent! The perimeter is {perimeter} units.",
            f"¡Excelente! El perímetro es {perimeter} unidades.",
            board=WriteFinalAnswer(perimeter),
        ),
    ])


# ─── Word Problems ───────────────────────────────────────────────────────────

def word_problem_placeholder() -> StepSequence:
    """Shown while the semantic extraction is in flight."""
    return StepSequence([
        explanation(100, "Analyzing the problem...", "Analizando el problema..."),
        explanation(101, "One moment...", "Un momento..."),
    ], provisional=True)


_WORD_OPERATIONS = {
    "addition": ("+", lambda a, b: a + b),
    "subtraction": ("-", lambda a, b: a - b),
    "multiplication": ("×", lambda a, b: a * b),
    "division": ("÷", lambda a, b: a // b if b else None),
}


def solve_word_problem(extraction) -> StepSequence:
    """Context steps built from an ExtractionResult.

    subject/object/type set the scene, the personalization metaphor (if any)
    opens it. With two numbers and a basic operation the learner is then
    asked for the result.
    """
    subject_en = extraction.subject or "someone"
    subject_es = extraction.subject or "alguien"
    object_en = extraction.object or "things"
    object_es = extraction.object or "cosas"
    operation = extraction.operation

    steps = []
    if extraction.metaphor:
        steps.append(explanation(200, extraction.metaphor, extraction.metaphor))
    steps.append(explanation(
        201,
        f"The problem is about {subject_en} and {object_en}.",
        f"El problema trata sobre {subject_es} y {object_es}.",
    ))
    steps.append(explanation(
        202,
        f"To solve it, we will use {topic_name(operation, 'en').lower()}.",
        f"Para resolverlo, haremos una {topic_name(operation, 'es').lower()}.",
    ))

    numbers = extraction.numbers
    if len(numbers) >= 2 and operation in _WORD_OPERATIONS:
        a, b = numbers[0], numbers[1]
        symbol, compute = _WORD_OPERATIONS[operation]
        result = compute(a, b)
        if result is not None:
            steps.append(question(
                203,
                f"What is {a} {symbol} {b}?",
                f"¿Cuánto es {a} {symbol} {b}?",
                expected=result,
                hints_en=[f"Calculate: {a} {symbol} {b}", f"{a} {symbol} {b} = {result}"],
                hints_es=[f"Calcula: {a} {symbol} {b}", f"{a} {symbol} {b} = {result}"],
            ))
            steps.append(explanation(
                204,
                f"Perfect! The answer is {result}.",
                f"¡Perfecto! La respuesta es {result}.",
                board=WriteFinalAnswer(result),
            ))
    return StepSequence(steps)


def word_problem_board(extraction) -> list:
    """Redraw around the extracted numbers: clear, then a bar model."""
    numbers = extraction.numbers
    n1 = numbers[0] if numbers else 0
    n2 = numbers[1] if len(numbers) > 1 else 10
    return [
        Clear(),
        DrawStructuralLayout("bar_model", (max(n1, n2), min(n1, n2)), label=extraction.object or "Data"),
    ]


# ─── Generic Socratic Ladder ─────────────────────────────────────────────────

def solve_generic(problem_type: str, a: int, b: int) -> StepSequence:
    """Seven steps for types without a dedicated algorithm."""
    name_en = topic_name(problem_type, "en")
    name_es = topic_name(problem_type, "es")
    keywords = {name_en, name_es, problem_type, *BROAD_OPERATION_KEYWORDS}

    return StepSequence([
        explanation(
            901,
            f"I see you want to practice {name_en}. Let's use the Socratic method.",
            f"Veo que quieres practicar {name_es}. Usemos el método socrático.",
        ),
        question(
            902,
            "First, to make sure we are on the same page, what operation do you think "
            "we should use here? (Addition, Subtraction, Division, etc.)",
            "Primero, para asegurarnos de que estamos en la misma página, ¿qué operación "
            "crees que debemos usar aquí? (Suma, Resta, División, etc.)",
            keywords=keywords,
            hints_en=[f"Think about what we identified: {name_en}.", f"Is it {name_en}?"],
            hints_es=[f"Piensa en lo que identificamos: {name_es}.", f"¿Es una {name_es}?"],
        ),
        explanation(
            903,
            f"Exactly! It is a {name_en} operation. Now let's look at the data.",
            f"¡Exacto! Es una operación de {name_es}. Ahora miremos los datos.",
        ),
        action(
            904,
            "Let me draw something so we can visualize it better...",
            "Déjame dibujar algo para que lo visualicemos mejor...",
            board=HighlightRegion(),
        ),
        question(
            905,
            f"We have the number {a}. What is the second number we are going to work with?",
            f"Tenemos el número {a}. ¿Cuál es el segundo número con el que vamos a trabajar?",
            expected=b,
            hints_en=["Look for the other number in your text.", f"It's {b}."],
            hints_es=["Busca el otro número en tu texto.", f"Es {b}."],
        ),
        explanation(
            906,
            f"Very good. We have {a} and {b}.",
            f"Muy bien. Tenemos {a} y {b}.",
        ),
        question(
            907,
            f"Now, if we apply {name_en}, what do you think the result will be? Try to calculate it.",
            f"Ahora, si aplicamos la {name_es}, ¿cuál crees que será el resultado? Intenta calcularlo.",
            accepts_any_number=True,
            hints_en=["Take your time.", "Use paper if you need."],
            hints_es=["Tómate tu tiempo.", "Usa papel si necesitas."],
        ),
    ])


# ─── Dispatch ────────────────────────────────────────────────────────────────

def generate(
    problem_type: str,
    operand_a: int,
    operand_b: int,
    grade: int = 3,
    style: str = "colombia",
) -> StepSequence:
    """Build the step sequence for a problem. Word problems get placeholders."""
    if problem_type == "division":
        return solve_division(operand_a, operand_b, style)
    if problem_type == "multiplication":
        return solve_multiplication(operand_a, operand_b)
    if problem_type == "addition":
        return solve_addition(operand_a, operand_b)
    if problem_type == "subtraction":
        return solve_subtraction(operand_a, operand_b)
    if problem_type == "area":
        return solve_rectangle_area(operand_a, operand_b)
    if problem_type == "perimeter":
        return solve_rectangle_perimeter(operand_a, operand_b)
    if problem_type == "word_problem":
        return word_problem_placeholder()
    return solve_generic(problem_type, operand_a, operand_b)


def structural_layout(
    problem_type: str,
    operand_a: int,
    operand_b: int,
    grade: int = 3,
    style: str = "colombia",
    text: Optional[str] = None,
) -> list:
    """Board directives that set up a fresh problem."""
    operands = (operand_a, operand_b)
    if problem_type == "division":
        layout = DrawStructuralLayout("division", operands, style)
    elif problem_type == "multiplication":
        layout = DrawStructuralLayout("column_multiplication", operands, style)
    elif problem_type == "addition":
        # Younger learners see part + part = whole
        if grade <= 2:
            layout = DrawStructuralLayout("number_bond", (None, operand_a, operand_b), style)
        else:
            layout = DrawStructuralLayout("column_addition", operands, style)
    elif problem_type == "subtraction":
        if grade <= 2:
            layout = DrawStructuralLayout("number_bond", (operand_a, operand_b, None), style)
        else:
            layout = DrawStructuralLayout("column_subtraction", operands, style)
    elif problem_type in ("area", "perimeter"):
        layout = DrawStructuralLayout("rectangle", operands, style)
    elif problem_type == "fractions":
        # numerator over denominator: a bar of b parts with a shaded
        layout = DrawStructuralLayout("bar_model", (operand_b, operand_a), style)
    elif problem_type == "word_problem":
        layout = DrawStructuralLayout("text", (), style, label="Detecting data...")
    else:
        layout = DrawStructuralLayout("text", operands, style, label=text or "")
    return [Clear(), layout]
