from dataclasses import dataclass


@dataclass(frozen=True)
class ClientConfig:
    server_address: str = "127.0.0.1"
    player_port: int = 10015
    designer_port: int = 10016
    connect_timeout: float = 10.0
    close_linger: float = 1.0
    poll_interval: float = 0.01

    def port_for(self, designer: bool) -> int:
        return self.designer_port if designer else self.player_port
