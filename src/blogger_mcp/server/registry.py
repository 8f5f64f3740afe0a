"""
Operation Registry — Named, schema-validated tools

An Operation bundles a tool name, its description, a JSON Schema for its
arguments and the async handler that does the work. The Registry is built
once at startup and is read-only afterwards, so both transports can look
operations up concurrently without locking.
"""

from dataclasses import dataclass
from functools import cached_property
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Optional

from jsonschema import Draft202012Validator

from blogger_mcp.server.logger import get_logger

log = get_logger("registry")

Handler = Callable[[Dict[str, Any]], Awaitable[Any]]


class DuplicateOperationName(ValueError):
    """Two operations were registered under the same name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Duplicate operation name: {name}")


class UnknownOperation(LookupError):
    """No operation is registered under the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class InvalidParameters(ValueError):
    """Tool arguments failed schema validation."""

    def __init__(self, details: str):
        self.details = details
        super().__init__(f"Invalid parameters: {details}")


@dataclass(frozen=True)
class Operation:
    """A single remote-callable tool."""

    name: str
    description: str
    input_schema: Dict[str, Any]
    handler: Handler

    @cached_property
    def validator(self) -> Draft202012Validator:
        return Draft202012Validator(self.input_schema)

    def validate(self, raw_input: Any) -> Dict[str, Any]:
        """
        Validate raw arguments and return the coerced input.

        Missing input counts as an empty object. Declared defaults are filled
        in; undeclared fields are dropped unless the schema forbids them, in
        which case validation already rejected them.
        """
        args = {} if raw_input is None else raw_input
        errors = sorted(self.validator.iter_errors(args), key=lambda e: e.json_path)
        if errors:
            raise InvalidParameters("; ".join(_describe(e) for e in errors))

        properties = self.input_schema.get("properties")
        if properties is None:
            return dict(args)

        coerced = {k: v for k, v in args.items() if k in properties}
        for key, prop in properties.items():
            if key not in coerced and isinstance(prop, dict) and "default" in prop:
                coerced[key] = prop["default"]
        return coerced

    def to_tool_dict(self) -> Dict[str, Any]:
        """MCP tools/list entry."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


def _describe(error) -> str:
    return f"{error.json_path}: {error.message}"


class Registry:
    """
    Ordered, immutable mapping of tool name -> Operation.

    Usage:
        registry = Registry(build_operations(service))
        op = registry.lookup("get_blog")
    """

    def __init__(self, operations: Iterable[Operation]):
        ops: Dict[str, Operation] = {}
        for op in operations:
            if op.name in ops:
                raise DuplicateOperationName(op.name)
            Draft202012Validator.check_schema(op.input_schema)
            ops[op.name] = op
        self._ops = MappingProxyType(ops)
        log.info(f"Registered {len(ops)} tools: {list(ops)}")

    def lookup(self, name: str) -> Operation:
        try:
            return self._ops[name]
        except (KeyError, TypeError):
            raise UnknownOperation(name) from None

    def get(self, name: str) -> Optional[Operation]:
        try:
            return self._ops.get(name)
        except TypeError:
            return None

    def names(self) -> List[str]:
        return list(self._ops)

    def catalog(self) -> List[Dict[str, Any]]:
        return [op.to_tool_dict() for op in self._ops.values()]

    def __contains__(self, name: object) -> bool:
        return self.get(name) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._ops)

    def __iter__(self) -> Iterator[Operation]:
        return iter(self._ops.values())


def build_registry(operations: Iterable[Operation]) -> Registry:
    return Registry(operations)
