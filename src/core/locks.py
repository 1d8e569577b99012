import asyncio
import weakref

class PhoneLocks:
    """
    Um asyncio.Lock por telefone, para processar as mensagens de um mesmo
    usuário em sequência. Vale apenas dentro de um processo.
    """

    def __init__(self):
        self._locks = weakref.WeakValueDictionary()

    def get(self, phone: str) -> asyncio.Lock:
        lock = self._locks.get(phone)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[phone] = lock
        return lock

phone_locks = PhoneLocks()
