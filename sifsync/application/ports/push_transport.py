from typing import Protocol


class PushTransport(Protocol):
    async def request_authorization(self) -> bool:
        ...

    def register_for_remote_notifications(self) -> None:
        ...
