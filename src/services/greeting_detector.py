# Saudações reconhecidas no primeiro contato
GREETINGS = [
    "oi",
    "olá",
    "ola",
    "bom dia",
    "boa tarde",
    "boa noite",
    "hey",
    "e ai",
    "e aí",
    "salve",
    "fala",
    "opa",
    "eae",
]

def is_greeting(text: str) -> bool:
    """
    Verifica se a mensagem é uma saudação.

    Casa quando o texto normalizado é igual a uma saudação ou começa com ela
    seguida de espaço ou vírgula ("Olá, tudo bem?" casa, "bom dia!" não).
    """
    normalized = text.lower().strip()
    return any(
        normalized == greeting
        or normalized.startswith(greeting + " ")
        or normalized.startswith(greeting + ",")
        for greeting in GREETINGS
    )
