"""Module-level name resolution over a tree-sitter Python parse tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

from ..models import DiagnosticRecord, LineInfo, Severity
from .nodes import iter_preorder, node_text

_DEFINITION_TYPES = {"function_definition", "class_definition"}
_IMPORT_TYPES = {"import_statement", "import_from_statement"}


@dataclass
class Binding:
    """A name bound at module level by an import or a definition."""

    name: str
    kind: str
    offset: int
    length: int


@dataclass
class ModuleScope:
    """Names a module binds and the names it references."""

    imports: Dict[str, Binding] = field(default_factory=dict)
    definitions: Dict[str, Binding] = field(default_factory=dict)
    assigned: Set[str] = field(default_factory=set)
    references: Set[str] = field(default_factory=set)
    exports: Optional[List[str]] = None
    exports_offset: int = 0

    def is_bound(self, name: str) -> bool:
        return name in self.imports or name in self.definitions or name in self.assigned

    def unused_imports(self) -> List[Binding]:
        exported = set(self.exports or ())
        return [
            binding
            for name, binding in self.imports.items()
            if name not in self.references and name not in exported
        ]


class ModuleResolver:
    """Builds a ModuleScope and reports scope-level findings for one file."""

    def __init__(self, path: str, line_info: LineInfo) -> None:
        self.path = path
        self.line_info = line_info
        self.diagnostics: List[DiagnosticRecord] = []

    def resolve(self, root_node) -> ModuleScope:  # type: ignore[no-untyped-def]
        scope = ModuleScope()
        import_spans: List[Tuple[int, int]] = []

        for node in iter_preorder(root_node):
            if node.type in _IMPORT_TYPES:
                import_spans.append((node.start_byte, node.end_byte))
                for binding in self._import_bindings(node):
                    scope.imports.setdefault(binding.name, binding)

        for child in root_node.children:
            definition = child
            if child.type == "decorated_definition":
                definition = child.child_by_field_name("definition")
            if definition is not None and definition.type in _DEFINITION_TYPES:
                self._record_definition(scope, definition)
            elif child.type == "expression_statement":
                self._record_assignment(scope, child)

        for node in iter_preorder(root_node):
            if node.type != "identifier":
                continue
            if any(start <= node.start_byte < end for start, end in import_spans):
                continue
            scope.references.add(node_text(node))

        self._report_unused_imports(scope)
        self._report_undefined_exports(scope)
        return scope

    def _import_bindings(self, node) -> Iterator[Binding]:  # type: ignore[no-untyped-def]
        for name_node in node.children_by_field_name("name"):
            if name_node.type == "aliased_import":
                alias = name_node.child_by_field_name("alias")
                if alias is None:
                    continue
                bound = node_text(alias)
            elif name_node.type == "dotted_name":
                parts = node_text(name_node).split(".")
                # `import a.b` binds `a`; `from m import b` binds `b`.
                bound = parts[0] if node.type == "import_statement" else parts[-1]
            else:
                continue
            yield Binding(
                name=bound,
                kind="import",
                offset=name_node.start_byte,
                length=name_node.end_byte - name_node.start_byte,
            )

    def _record_definition(self, scope: ModuleScope, node) -> None:  # type: ignore[no-untyped-def]
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        name = node_text(name_node)
        binding = Binding(
            name=name,
            kind="class" if node.type == "class_definition" else "function",
            offset=name_node.start_byte,
            length=name_node.end_byte - name_node.start_byte,
        )
        previous = scope.definitions.get(name)
        if previous is not None:
            first_line = self.line_info.get_location(previous.offset).line
            self._add(
                binding,
                Severity.WARNING,
                "duplicate_definition",
                f"'{name}' is already defined on line {first_line}",
            )
        scope.definitions[name] = binding

    @staticmethod
    def _record_assignment(scope: ModuleScope, statement) -> None:  # type: ignore[no-untyped-def]
        assignment = statement.children[0] if statement.children else None
        if assignment is None or assignment.type != "assignment":
            return
        left = assignment.child_by_field_name("left")
        right = assignment.child_by_field_name("right")
        if left is None:
            return
        if left.type == "identifier":
            scope.assigned.add(node_text(left))
        if node_text(left) != "__all__" or right is None or right.type not in {"list", "tuple"}:
            return
        names: List[str] = []
        for element in right.named_children:
            if element.type == "string":
                names.append(node_text(element).strip("'\""))
        scope.exports = names
        scope.exports_offset = left.start_byte

    def _report_unused_imports(self, scope: ModuleScope) -> None:
        if self.path.endswith("__init__.py"):
            # Package initialisers import to re-export.
            return
        for binding in scope.unused_imports():
            self._add(binding, Severity.HINT, "unused_import", f"Unused import '{binding.name}'")

    def _report_undefined_exports(self, scope: ModuleScope) -> None:
        if not scope.exports:
            return
        for name in scope.exports:
            if scope.is_bound(name):
                continue
            binding = Binding(name=name, kind="export", offset=scope.exports_offset, length=len("__all__"))
            self._add(
                binding,
                Severity.WARNING,
                "undefined_export",
                f"'{name}' is listed in __all__ but never bound",
            )

    def _add(self, binding: Binding, severity: Severity, code: str, message: str) -> None:
        location = self.line_info.get_location(binding.offset)
        self.diagnostics.append(
            DiagnosticRecord(
                path=self.path,
                offset=binding.offset,
                length=binding.length,
                line=location.line,
                column=location.column,
                severity=severity,
                code=code,
                message=message,
            )
        )


__all__ = ["Binding", "ModuleResolver", "ModuleScope"]
