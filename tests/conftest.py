import pytest

TITUS = r"""\id TIT EN_ULT en_English_ltr Unlocked Literal Bible
\usfm 3.0
\h Titus
\toc1 The Letter of Paul to Titus
\mt Titus

\c 1
\p
\v 1 \zaln-s |x-strong="G39720" x-lemma="Παῦλος" x-occurrence="1" x-occurrences="1" x-content="Παῦλος"\*\w Paul|x-occurrence="1" x-occurrences="1"\w*\zaln-e\*,
\v 2 in hope\f + \ft Or \fqa eternal\fqa* life\f* of life.
\q1 \v 3 God said
\q2 this.
\s5
\v 4-5 To Titus, \bd a true son\bd* in our faith.

\c 2
\p
\v 1 But you, speak.
"""


@pytest.fixture
def titus() -> str:
    return TITUS
