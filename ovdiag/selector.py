"""Selection, filtering and execution of the diagnostic services an ECU offers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, Iterable

from ovdiag.diag import ParamDecodeError, Service

RunCommand = Callable[[int, bytes], bytes]


@dataclass
class ServiceRef:
    """A diagnostic service that can be searched for, run and decoded."""

    service: Service

    @property
    def name(self) -> str:
        return self.service.name

    @property
    def description(self) -> str:
        return self.service.description

    def __str__(self) -> str:
        return self.service.name

    def match_query(self, query: str) -> bool:
        """Whether the lower-cased service name contains ``query``."""
        return query in self.service.name.lower()

    def require_input(self) -> bool:
        """Whether the service needs input parameters before it can run."""
        return bool(self.service.input_params)

    def build_args(self, replace_args: bytes = b"") -> bytes:
        """Arguments sent after the service ID, with ``replace_args`` OR-ed into them.

        ``replace_args`` is applied only when it is non-empty and no longer
        than the payload's arguments; otherwise the payload is used as is.
        """
        args = bytearray(self.service.payload[1:])
        if replace_args and len(replace_args) <= len(args):
            for pos, value in enumerate(replace_args):
                args[pos] |= value
        return bytes(args)

    def exec(self, replace_args: bytes, run_cmd: RunCommand) -> bytes:
        """Run the service through ``run_cmd(service_id, args)`` and return its response."""
        if not self.service.payload:
            raise ValueError(f"service {self.service.name!r} has an empty payload")
        return run_cmd(self.service.payload[0], self.build_args(replace_args))

    def args_to_string(self, args: bytes) -> str:
        """Decode a response into one ``name: value`` line per output parameter."""
        outputs = self.service.output_params
        if not outputs:
            return "OK"
        lines = []
        for param in outputs:
            try:
                lines.append(f"{param.name}: {param.decode_value_to_string(args)}")
            except ParamDecodeError as exc:
                lines.append(f"Error decoding {param.name}: {type(exc).__name__}")
        return "\n".join(lines)


class ViewKind(enum.Enum):
    """Which group of services is being shown."""

    READ = "read"
    WRITE = "write"
    ACTUATION = "actuation"


@dataclass
class ServiceSelector:
    """Tracks which services are shown, which one is picked and whether it loops."""

    read: list[ServiceRef]
    write: list[ServiceRef]
    actuation: list[ServiceRef]
    shown: list[ServiceRef] = field(init=False)
    query: str = field(init=False, default="")
    kind: ViewKind = field(init=False, default=ViewKind.READ)
    selected: ServiceRef | None = field(init=False, default=None)
    can_execute: bool = field(init=False, default=False)
    input_required: bool = field(init=False, default=False)
    is_loop: bool = field(init=False, default=False)
    args: bytes = field(init=False, default=b"")

    def __init__(
        self,
        read: Iterable[ServiceRef],
        write: Iterable[ServiceRef],
        actuation: Iterable[ServiceRef],
    ) -> None:
        self.read = list(read)
        self.write = list(write)
        self.actuation = list(actuation)
        self.shown = list(self.read)
        self.query = ""
        self.kind = ViewKind.READ
        self.selected = None
        self.can_execute = False
        self.input_required = False
        self.is_loop = False
        self.args = b""

    def _source(self) -> list[ServiceRef]:
        return {
            ViewKind.READ: self.read,
            ViewKind.WRITE: self.write,
            ViewKind.ACTUATION: self.actuation,
        }[self.kind]

    def filter(self, source: Iterable[ServiceRef]) -> list[ServiceRef]:
        """The services in ``source`` whose names match the current query."""
        if not self.query:
            return list(source)
        needle = self.query.lower()
        return [s for s in source if s.match_query(needle)]

    def _reset_selection(self) -> None:
        self.selected = None
        self.can_execute = False
        self.input_required = False

    def view(self, kind: ViewKind) -> None:
        """Switch to another group of services, clearing the selection."""
        self.kind = kind
        self.shown = self.filter(self._source())
        self._reset_selection()

    def search(self, query: str) -> None:
        """Change the search text and update the shown services."""
        old_len = len(self.query)
        self.query = query
        if old_len < len(query):
            self.shown = self.filter(self.shown)
        else:
            self.shown = self.filter(self._source())

    def pick(self, service: ServiceRef) -> None:
        """Select a service; it can run at once only if it needs no input."""
        needs_input = service.require_input()
        self.can_execute = not needs_input
        self.input_required = needs_input
        self.selected = service

    def begin_loop(self) -> ServiceRef | None:
        """Start repeatedly reading the selected service and return it, if any."""
        if self.selected is None:
            return None
        self.is_loop = True
        return self.selected

    def stop_loop(self) -> None:
        self.is_loop = False

    def exec_request(self) -> tuple[ServiceRef, bytes]:
        """The selected service and the arguments to run it with."""
        if self.selected is None:
            raise LookupError("no service is selected")
        return self.selected, self.args