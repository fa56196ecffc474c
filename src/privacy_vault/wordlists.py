"""Closed Spanish/English word lists used to suppress false-positive names.

All entries are lowercase; callers compare with ``word.lower()``.
"""

from __future__ import annotations

# Words that are capitalized at sentence start but never a name on their own.
COMMON_WORDS: frozenset[str] = frozenset({
    # Spanish articles and determiners
    "de", "del", "la", "el", "los", "las", "un", "una", "unos", "unas",
    # Spanish possessives
    "su", "sus", "mi", "mis", "tu", "tus",
    "nuestro", "nuestra", "nuestros", "nuestras",
    # Spanish prepositions
    "con", "para", "sobre", "desde", "hasta", "por", "en", "a", "al",
    # Spanish demonstratives and greetings
    "buenos", "buenas", "hola", "este", "esta", "estos", "estas",
    "ese", "esa", "esos", "esas",
    # Spanish sentence-initial verbs
    "es", "son", "era", "fue", "ha", "han", "resume", "resumen", "haz", "hace",
    "crea", "crear", "genera", "generar", "escribe", "escribir",
    "analiza", "analizar",
    # English articles and determiners
    "the", "an", "some", "any", "this", "that", "these", "those",
    # English possessives
    "his", "her", "their", "our", "your", "my", "its",
    # English sentence-initial verbs
    "is", "are", "was", "were", "has", "have", "write", "writes",
    "create", "creates", "generate", "generates", "analyze", "analyzes",
    "summary", "contact", "contacts", "dear", "hello", "hi",
})

# Words that disqualify a lowercase two-word candidate in lenient mode.
STOPWORDS: frozenset[str] = frozenset({
    # Spanish articles and determiners
    "de", "del", "la", "el", "los", "las", "un", "una", "unos", "unas",
    # Spanish possessives
    "su", "sus", "mi", "mis", "tu", "tus", "nuestro", "nuestra", "nuestros",
    "nuestras", "vuestro", "vuestra", "vuestros", "vuestras",
    # Spanish prepositions and conjunctions
    "y", "o", "para", "con", "sin", "sobre", "desde", "hasta", "por", "en", "a", "al",
    # Spanish common words
    "oferta", "trabajo", "email", "correo", "telefono", "teléfono", "cv",
    "resume", "resumen", "numero", "número", "numeros", "números",
    "celular", "cel", "contacto", "contactos", "habilidades", "habilidad",
    "es", "son", "esta", "está", "estan", "están",
    "haz", "hace", "crea", "crear", "genera", "generar", "escribe", "escribir",
    "analiza", "analizar", "coordina", "coordinar",
    "cuyo", "cuya", "cuyos", "cuyas", "nombre", "nom", "que", "cual", "cuales",
    "llamado", "llamada", "llamo", "llama", "persona",
    # English articles and determiners
    "the", "a", "an", "some", "any",
    # English possessives
    "his", "her", "their", "our", "your", "my", "its",
    # English prepositions and conjunctions
    "and", "or", "but", "with", "from", "for", "to", "in", "on", "at", "by", "of",
    # English common words
    "email", "phone", "number", "contact", "contacts", "skills", "skill",
    "ability", "abilities", "write", "writes", "create", "creates",
    "generate", "generates", "analyze", "analyzes", "resume", "summary",
    "whose", "called", "named", "name", "person",
})

# Verbs and auxiliaries that cannot start a personal name.
INVALID_FIRST_WORDS: frozenset[str] = frozenset({
    # Spanish
    "es", "son", "era", "fue", "ha", "han", "ser", "estar",
    # English
    "is", "are", "was", "were", "has", "have", "been", "being",
})


def is_common_word(word: str) -> bool:
    return word.lower() in COMMON_WORDS or word.lower() in STOPWORDS


def is_stopword(word: str) -> bool:
    return word.lower() in STOPWORDS
