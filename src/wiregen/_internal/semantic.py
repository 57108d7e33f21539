from __future__ import annotations

import ast
import builtins
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

from wiregen.compilation import Compilation, SourceFile

logger = logging.getLogger(__name__)

INTERFACE_ROOTS = frozenset({"typing.Protocol", "typing_extensions.Protocol", "abc.ABC"})
ABSTRACT_METACLASSES = frozenset({"abc.ABCMeta"})
ABSTRACT_METHOD_DECORATORS = frozenset({"abc.abstractmethod"})
_BUILTIN_NAMES = frozenset(dir(builtins))
_MAX_ALIAS_DEPTH = 16


@dataclass(frozen=True, slots=True)
class TypeReference:
    """A de-aliased reference to a class, optionally subscripted."""

    module: str | None
    """Defining module, or ``None`` for builtins."""
    qualname: str
    arguments: tuple[TypeReference, ...] = ()

    @property
    def display_name(self) -> str:
        name = self.qualname if self.module is None else f"{self.module}.{self.qualname}"
        if not self.arguments:
            return name
        return f"{name}[{', '.join(argument.display_name for argument in self.arguments)}]"

    def iter_modules(self) -> Iterator[str]:
        if self.module is not None:
            yield self.module
        for argument in self.arguments:
            yield from argument.iter_modules()


@dataclass(frozen=True, slots=True, eq=False)
class ClassSymbol:
    """Semantic descriptor of a class declared at module level or nested in classes."""

    module: str
    qualname: str
    declaring_module: str
    """Identity of the compilation or reference that declares the class."""
    node: ast.ClassDef = field(repr=False)
    source: SourceFile = field(repr=False)

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.qualname}"

    @property
    def is_public(self) -> bool:
        return not any(part.startswith("_") for part in self.qualname.split("."))

    @property
    def reference(self) -> TypeReference:
        return TypeReference(module=self.module, qualname=self.qualname)


@dataclass(frozen=True, slots=True)
class ContractSymbol:
    """An interface implemented by a class, as referenced from its base list."""

    symbol: ClassSymbol
    reference: TypeReference


@dataclass(frozen=True, slots=True)
class CandidateDeclaration:
    """A syntactic class declaration that carries at least one decorator."""

    source: SourceFile
    node: ast.ClassDef = field(repr=False)


@dataclass(frozen=True, slots=True)
class TriggerInvocation:
    source: SourceFile
    node: ast.Call = field(repr=False)
    enclosing_function: str | None


@dataclass(frozen=True, slots=True)
class AnchorLocation:
    """Namespace context of the first trigger call site."""

    module: str
    function: str
    namespace: str | None
    """Enclosing package, or ``None`` for the global scope."""

    @property
    def is_global(self) -> bool:
        return self.namespace is None


@dataclass(slots=True)
class _ParsedModule:
    source: SourceFile
    identity: str
    tree: ast.Module
    is_own: bool
    bindings: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class _Context:
    module: _ParsedModule
    enclosing_class: ast.ClassDef | None = None
    enclosing_qualname: str | None = None


class SemanticModel:
    """Read-only symbol oracle over the sources of one compilation pass.

    Every source is parsed once. Sources that fail to parse are logged and
    contribute nothing.
    """

    def __init__(self, compilation: Compilation) -> None:
        self.compilation = compilation
        self._modules: list[_ParsedModule] = []
        self._modules_by_name: dict[str, _ParsedModule] = {}
        self._symbols: dict[str, ClassSymbol] = {}
        self._symbols_by_node: dict[int, ClassSymbol] = {}
        self._interface_cache: dict[str, bool] = {}

        own_identity = compilation.assembly_name or ""
        for source in compilation.sources:
            self._add_module(source, identity=own_identity, is_own=True)
        for reference in compilation.references:
            for source in reference.sources:
                self._add_module(source, identity=reference.name, is_own=False)
        for module in self._modules:
            if module.source.module_name is not None:
                self._index_module(module)

    # candidates and symbols

    def candidate_declarations(self) -> Iterator[CandidateDeclaration]:
        """Yield decorated class declarations of the compilation in source order."""
        for module in self._modules:
            if not module.is_own:
                continue
            collector = _CandidateCollector(module.source)
            collector.visit(module.tree)
            yield from collector.candidates

    def has_semantic_model(self, declaration: CandidateDeclaration) -> bool:
        return declaration.source.module_name is not None

    def declared_symbol(self, declaration: CandidateDeclaration) -> ClassSymbol | None:
        return self._symbols_by_node.get(id(declaration.node))

    # name resolution

    def resolve_name(self, symbol: ClassSymbol, expression: ast.expr) -> str | None:
        """Resolve a name or attribute chain used in ``symbol``'s declaration.

        Returns the de-aliased dotted name, or ``None`` when the expression is
        not a name or its head is not bound in the module.
        """
        return self._resolve(self._context_for(symbol), expression)

    def resolve_in_module(self, source: SourceFile, expression: ast.expr) -> str | None:
        """Resolve ``expression`` against the module-level bindings of ``source``.

        Used for classes that have no symbol, such as classes declared in a
        function body. Names bound only inside the function are not seen.
        """
        module = self._modules_by_name.get(source.module_name or "")
        if module is None or module.source is not source:
            return None
        return self._resolve(_Context(module=module), expression)

    def _resolve(self, context: _Context, expression: ast.expr) -> str | None:
        if isinstance(expression, ast.Name):
            if context.enclosing_class is not None and context.enclosing_qualname is not None:
                for statement in context.enclosing_class.body:
                    if isinstance(statement, ast.ClassDef) and statement.name == expression.id:
                        module_name = context.module.source.module_name
                        return f"{module_name}.{context.enclosing_qualname}.{expression.id}"
            target = context.module.bindings.get(expression.id)
            return None if target is None else self._canonicalize(target)
        if isinstance(expression, ast.Attribute):
            head = self._resolve(context, expression.value)
            if head is None:
                return None
            return self._canonicalize(f"{head}.{expression.attr}")
        return None

    def _canonicalize(self, qualified_name: str) -> str:
        for _ in range(_MAX_ALIAS_DEPTH):
            if qualified_name in self._symbols:
                return qualified_name
            module_name, attribute_path = self._split_module(qualified_name)
            if module_name is None or not attribute_path:
                return qualified_name
            head, _, rest = attribute_path.partition(".")
            target = self._modules_by_name[module_name].bindings.get(head)
            if target is None:
                return qualified_name
            resolved = f"{target}.{rest}" if rest else target
            if resolved == qualified_name:
                return qualified_name
            qualified_name = resolved
        return qualified_name

    def _split_module(self, qualified_name: str) -> tuple[str | None, str]:
        parts = qualified_name.split(".")
        for index in range(len(parts), 0, -1):
            candidate = ".".join(parts[:index])
            if candidate in self._modules_by_name:
                return candidate, ".".join(parts[index:])
        return None, qualified_name

    # interfaces

    def all_interfaces(self, symbol: ClassSymbol) -> tuple[ContractSymbol, ...]:
        """Return every interface ``symbol`` implements, directly or through its bases.

        Order is depth-first over declared bases, left to right, keeping the
        first occurrence of each reference.
        """
        contracts: dict[str, ContractSymbol] = {}
        visited = {symbol.qualified_name}
        self._collect_interfaces(symbol, contracts, visited)
        return tuple(contracts.values())

    def _collect_interfaces(
        self,
        symbol: ClassSymbol,
        contracts: dict[str, ContractSymbol],
        visited: set[str],
    ) -> None:
        context = self._context_for(symbol)
        for base in symbol.node.bases:
            base_symbol, reference = self._resolve_base(context, base)
            if base_symbol is None or base_symbol.qualified_name in visited:
                continue
            visited.add(base_symbol.qualified_name)
            if self.is_interface(base_symbol):
                contracts.setdefault(reference.display_name, ContractSymbol(base_symbol, reference))
            self._collect_interfaces(base_symbol, contracts, visited)

    def is_interface(self, symbol: ClassSymbol) -> bool:
        cached = self._interface_cache.get(symbol.qualified_name)
        if cached is not None:
            return cached
        # Provisional value breaks inheritance cycles in malformed sources.
        self._interface_cache[symbol.qualified_name] = False
        result = self._compute_is_interface(symbol)
        self._interface_cache[symbol.qualified_name] = result
        return result

    def _compute_is_interface(self, symbol: ClassSymbol) -> bool:
        context = self._context_for(symbol)
        for keyword in symbol.node.keywords:
            if keyword.arg == "metaclass" and self._resolve(context, keyword.value) in ABSTRACT_METACLASSES:
                return True
        inherits_interface = False
        for base in symbol.node.bases:
            origin = base.value if isinstance(base, ast.Subscript) else base
            if self._resolve(context, origin) in INTERFACE_ROOTS:
                return True
            base_symbol, _ = self._resolve_base(context, base)
            if base_symbol is not None and self.is_interface(base_symbol):
                inherits_interface = True
        return inherits_interface and self._declares_abstract_method(context, symbol.node)

    def _declares_abstract_method(self, context: _Context, node: ast.ClassDef) -> bool:
        for statement in node.body:
            if not isinstance(statement, ast.FunctionDef | ast.AsyncFunctionDef):
                continue
            for decorator in statement.decorator_list:
                if self._resolve(context, decorator) in ABSTRACT_METHOD_DECORATORS:
                    return True
        return False

    def _resolve_base(
        self,
        context: _Context,
        base: ast.expr,
    ) -> tuple[ClassSymbol | None, TypeReference]:
        origin = base.value if isinstance(base, ast.Subscript) else base
        name = self._resolve(context, origin)
        base_symbol = None if name is None else self._symbols.get(name)
        if base_symbol is None:
            return None, TypeReference(module=None, qualname=ast.unparse(base))
        reference = base_symbol.reference
        if isinstance(base, ast.Subscript):
            arguments = self._resolve_type_arguments(context, base.slice)
            if arguments is not None:
                reference = TypeReference(
                    module=reference.module,
                    qualname=reference.qualname,
                    arguments=arguments,
                )
        return base_symbol, reference

    def _resolve_type_arguments(
        self,
        context: _Context,
        expression: ast.expr,
    ) -> tuple[TypeReference, ...] | None:
        elements = expression.elts if isinstance(expression, ast.Tuple) else [expression]
        arguments: list[TypeReference] = []
        for element in elements:
            argument = self._resolve_type_argument(context, element)
            if argument is None:
                return None
            arguments.append(argument)
        return tuple(arguments)

    def _resolve_type_argument(self, context: _Context, expression: ast.expr) -> TypeReference | None:
        if isinstance(expression, ast.Subscript):
            origin = self._resolve_type_argument(context, expression.value)
            arguments = self._resolve_type_arguments(context, expression.slice)
            if origin is None or arguments is None:
                return None
            return TypeReference(module=origin.module, qualname=origin.qualname, arguments=arguments)
        if isinstance(expression, ast.Constant) and expression.value is None:
            return TypeReference(module=None, qualname="None")
        name = self._resolve(context, expression)
        if name is not None:
            symbol = self._symbols.get(name)
            return None if symbol is None else symbol.reference
        if isinstance(expression, ast.Name) and expression.id in _BUILTIN_NAMES:
            return TypeReference(module=None, qualname=expression.id)
        return None

    # anchor

    def first_trigger_invocation(self, callee_name: str) -> TriggerInvocation | None:
        """Return the first call, in file and source order, of a callee named ``callee_name``.

        Both plain calls and attribute calls match, so ``discover_in_app(services)``
        and ``registrations.discover_in_app(services)`` are found alike.
        """
        for module in self._modules:
            if not module.is_own:
                continue
            finder = _TriggerFinder(module.source, callee_name)
            finder.visit(module.tree)
            if finder.invocation is not None:
                return finder.invocation
        return None

    def anchor_for(self, invocation: TriggerInvocation) -> AnchorLocation | None:
        """Return the namespace context of a trigger call, or ``None`` outside any function."""
        module_name = invocation.source.module_name
        if module_name is None or invocation.enclosing_function is None:
            return None
        return AnchorLocation(
            module=module_name,
            function=invocation.enclosing_function,
            namespace=invocation.source.package,
        )

    # indexing

    def _add_module(self, source: SourceFile, *, identity: str, is_own: bool) -> None:
        try:
            tree = ast.parse(source.text, filename=source.path)
        except (SyntaxError, ValueError) as exc:
            logger.warning("Skipping %s: source cannot be parsed (%s)", source.path, exc)
            return
        if source.module_name is not None and source.module_name in self._modules_by_name:
            logger.warning(
                "Skipping %s: module %s is already provided by %s",
                source.path,
                source.module_name,
                self._modules_by_name[source.module_name].source.path,
            )
            return
        module = _ParsedModule(source=source, identity=identity, tree=tree, is_own=is_own)
        self._modules.append(module)
        if source.module_name is not None:
            self._modules_by_name[source.module_name] = module

    def _index_module(self, module: _ParsedModule) -> None:
        module_name = module.source.module_name
        assert module_name is not None
        for statement in _iter_module_statements(module.tree.body):
            if isinstance(statement, ast.Import):
                for alias in statement.names:
                    if alias.asname is not None:
                        module.bindings[alias.asname] = alias.name
                    else:
                        head = alias.name.partition(".")[0]
                        module.bindings[head] = head
            elif isinstance(statement, ast.ImportFrom):
                base = _import_base(module.source, statement)
                if base is None:
                    continue
                for alias in statement.names:
                    if alias.name == "*":
                        continue
                    module.bindings[alias.asname or alias.name] = f"{base}.{alias.name}"
            elif isinstance(statement, ast.ClassDef):
                module.bindings[statement.name] = f"{module_name}.{statement.name}"
                self._index_class(module, statement, qualname=statement.name)
            elif isinstance(statement, ast.FunctionDef | ast.AsyncFunctionDef):
                module.bindings[statement.name] = f"{module_name}.{statement.name}"
            elif isinstance(statement, ast.Assign | ast.AnnAssign):
                self._index_alias(module, statement)

    def _index_alias(self, module: _ParsedModule, statement: ast.Assign | ast.AnnAssign) -> None:
        targets = statement.targets if isinstance(statement, ast.Assign) else [statement.target]
        if len(targets) != 1 or not isinstance(targets[0], ast.Name) or statement.value is None:
            return
        if not isinstance(statement.value, ast.Name | ast.Attribute):
            module.bindings.pop(targets[0].id, None)
            return
        target = self._resolve(_Context(module=module), statement.value)
        if target is None:
            module.bindings.pop(targets[0].id, None)
        else:
            module.bindings[targets[0].id] = target

    def _index_class(self, module: _ParsedModule, node: ast.ClassDef, *, qualname: str) -> None:
        module_name = module.source.module_name
        assert module_name is not None
        symbol = ClassSymbol(
            module=module_name,
            qualname=qualname,
            declaring_module=module.identity,
            node=node,
            source=module.source,
        )
        self._symbols.setdefault(symbol.qualified_name, symbol)
        self._symbols_by_node[id(node)] = symbol
        for statement in _iter_module_statements(node.body):
            if isinstance(statement, ast.ClassDef):
                self._index_class(module, statement, qualname=f"{qualname}.{statement.name}")

    def _context_for(self, symbol: ClassSymbol) -> _Context:
        module = self._modules_by_name[symbol.module]
        enclosing_qualname, _, _ = symbol.qualname.rpartition(".")
        if not enclosing_qualname:
            return _Context(module=module)
        enclosing = self._symbols.get(f"{symbol.module}.{enclosing_qualname}")
        return _Context(
            module=module,
            enclosing_class=None if enclosing is None else enclosing.node,
            enclosing_qualname=enclosing_qualname,
        )


def _iter_module_statements(body: list[ast.stmt]) -> Iterator[ast.stmt]:
    """Yield statements of a module or class body, descending into compound statements.

    Only function bodies are left out: everything else still runs in the
    module or class namespace.
    """
    for statement in body:
        if isinstance(statement, ast.If | ast.For | ast.AsyncFor | ast.While):
            yield from _iter_module_statements(statement.body)
            yield from _iter_module_statements(statement.orelse)
        elif isinstance(statement, ast.With | ast.AsyncWith):
            yield from _iter_module_statements(statement.body)
        elif isinstance(statement, ast.Try):
            yield from _iter_module_statements(statement.body)
            for handler in statement.handlers:
                yield from _iter_module_statements(handler.body)
            yield from _iter_module_statements(statement.orelse)
            yield from _iter_module_statements(statement.finalbody)
        elif isinstance(statement, ast.Match):
            for case in statement.cases:
                yield from _iter_module_statements(case.body)
        else:
            yield statement


def _import_base(source: SourceFile, statement: ast.ImportFrom) -> str | None:
    if statement.level == 0:
        return statement.module
    package = source.package
    if package is None:
        return None
    parts = package.split(".")
    if statement.level - 1 >= len(parts):
        return None
    parts = parts[: len(parts) - (statement.level - 1)]
    if statement.module:
        parts.append(statement.module)
    return ".".join(parts)


class _CandidateCollector(ast.NodeVisitor):
    def __init__(self, source: SourceFile) -> None:
        self.source = source
        self.candidates: list[CandidateDeclaration] = []

    def visit_ClassDef(self, node: ast.ClassDef) -> None:  # noqa: N802
        if node.decorator_list:
            self.candidates.append(CandidateDeclaration(source=self.source, node=node))
        self.generic_visit(node)


class _TriggerFinder(ast.NodeVisitor):
    def __init__(self, source: SourceFile, callee_name: str) -> None:
        self.source = source
        self.callee_name = callee_name
        self.invocation: TriggerInvocation | None = None
        self._scopes: list[str] = []
        self._functions: list[str] = []

    def visit_ClassDef(self, node: ast.ClassDef) -> None:  # noqa: N802
        self._scopes.append(node.name)
        try:
            self.generic_visit(node)
        finally:
            self._scopes.pop()

    def visit_FunctionDef(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:  # noqa: N802
        self._scopes.append(node.name)
        self._functions.append(".".join(self._scopes))
        try:
            self.generic_visit(node)
        finally:
            self._functions.pop()
            self._scopes.pop()

    visit_AsyncFunctionDef = visit_FunctionDef  # noqa: N815

    def visit_Call(self, node: ast.Call) -> None:  # noqa: N802
        if self.invocation is not None:
            return
        callee = node.func
        name = callee.id if isinstance(callee, ast.Name) else getattr(callee, "attr", None)
        if name == self.callee_name:
            self.invocation = TriggerInvocation(
                source=self.source,
                node=node,
                enclosing_function=self._functions[-1] if self._functions else None,
            )
            return
        self.generic_visit(node)
