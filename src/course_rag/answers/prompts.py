STRICT_SYSTEM_PROMPT = (
    "Answer ONLY using the CONTEXT and the syllabus text provided. "
    "If the answer is not in the CONTEXT/syllabus, say you don’t have that information. "
    "Don’t mention retrieval."
)

LENIENT_SYSTEM_PROMPT = (
    "Use the CONTEXT and syllabus when provided. Prefer them. "
    "Don’t mention retrieval."
)

SYLLABUS_PROMPT = "Here is important context from syllabus.md:\n{syllabus}"

USER_PROMPT = "QUESTION:\n{question}\n\nCONTEXT:\n{context}"

NO_CORPUS_MESSAGE = (
    "I don’t have any course materials loaded yet. Please ingest and try again."
)

NOT_FOUND_MESSAGE = (
    "I can’t find this in the course materials I have. "
    "Please check lecture titles or rephrase."
)

SYLLABUS_UNAVAILABLE = "Error loading syllabus."

FOOTER_WITH_LINK = (
    "\n\nThere may be errors in my responses; "
    "always refer to the course web page: {link}"
)

FOOTER_DEFAULT = (
    "\n\nThere may be errors in my responses; consult the official course page."
)
