import re

# "1.", "2)", "(3)", "a.", "b)" at the start of a line
QUESTION_START = re.compile(r"^(\(?\d{1,3}[.)]|\(?[a-hA-H][.)])\s+")
PAGE_NUMBER = re.compile(r"(page\s*)?\d+(\s*/\s*\d+)?", re.IGNORECASE)
BLANK_RUN = re.compile(r"_{2,}")


def clean_worksheet_text(raw_text: str) -> str:
    """Tidy text pulled out of a worksheet PDF before it goes to the model.

    Page numbers are dropped, wrapped lines are re-joined, and every numbered
    item ("1.", "b)") starts on its own line so questions don't run together.
    Fill-in blanks of any length are normalised to "____".
    """
    items = []
    buffer = []

    for line in raw_text.splitlines():
        line = line.strip()

        if PAGE_NUMBER.fullmatch(line):
            continue

        if not line:
            if buffer:
                items.append(" ".join(buffer))
                buffer = []
            continue

        line = BLANK_RUN.sub("____", line)
        if buffer and QUESTION_START.match(line):
            items.append(" ".join(buffer))
            buffer = [line]
        else:
            buffer.append(line)

    if buffer:
        items.append(" ".join(buffer))

    return "\n".join(items)
