"""
Dispatch Code Generator
=======================

Turns a variable, an ordered exhaustive type list and a body template into
a multi-way narrowing construct with one independent copy of the body per
type:

    if isinstance(s, __typecase_t0__):        # str
        <body, elt(s, i) -> s[i]>
    elif isinstance(s, __typecase_t1__):      # bytes
        <body, elt(s, i) -> s[i]>
    elif isinstance(s, __typecase_t2__):      # catch-all
        <body, elt(s, i) unchanged>
    else:
        raise __typecase_unmatched__(s, __typecase_types__)

The body is duplicated, not shared, so each copy is compiled against one
representation. This multiplies code size by the branch count and is meant
for expensive inner loops, not trivial bodies.

Branch order is the type list order; the first matching branch wins. The
final ``else`` only fires when the oracle or the exhaustiveness check was
wrong, and raises rather than falling back to generic code.

Within a branch the body must treat the dispatched variable as read-only.
Rebinding it is not rejected, but the narrowed type no longer describes
the variable afterwards.
"""

import ast
import copy
import inspect
import logging
import textwrap
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from typecase.analysis.oracle import DEFAULT_ORACLE, SubtypeOracle, is_class_test
from typecase.compiler.accessors import (
    DEFAULT_ACCESSOR_TABLE,
    AccessorTable,
    ElementAccessRewriter,
)
from typecase.errors import SpecializationError, UnmatchedTypeError
from typecase.utils.helpers import Timer, format_ns, format_type

logger = logging.getLogger(__name__)

TYPES_NAME = '__typecase_types__'
UNMATCHED_NAME = '__typecase_unmatched__'
FACTORY_NAME = '__typecase_factory__'


@dataclass
class DispatchBranch:
    """One narrowing branch: the type it accepts and its specialized body."""
    type: Any
    body: List[ast.stmt]
    accessor_name: str = ''


@dataclass
class GeneratedDispatch:
    """
    Result of ``DispatchGenerator.generate``.

    ``node`` refers to the names in ``bindings``; both must be installed
    in the namespace the code is compiled into.
    """
    var: str
    node: ast.If
    branches: List[DispatchBranch]
    bindings: Dict[str, Any] = field(default_factory=dict)

    @property
    def types(self) -> List[Any]:
        return [b.type for b in self.branches]

    def source(self) -> str:
        return ast.unparse(ast.fix_missing_locations(self.node))


def _parse_body(body: Union[str, Sequence[ast.stmt]]) -> List[ast.stmt]:
    if isinstance(body, str):
        return ast.parse(textwrap.dedent(body)).body
    return list(body)


class _DeclarationHoister(ast.NodeTransformer):
    """
    Pulls ``global``/``nonlocal`` statements out of a function body.

    A declaration may appear only once per scope, and the body is about
    to be copied once per branch. Nested scopes keep their own.
    """

    def __init__(self):
        self.globals: List[str] = []
        self.nonlocals: List[str] = []

    def _record(self, names: List[str], node: ast.stmt) -> ast.stmt:
        names.extend(n for n in node.names if n not in names)
        return ast.copy_location(ast.Pass(), node)

    def visit_Global(self, node: ast.Global) -> ast.stmt:
        return self._record(self.globals, node)

    def visit_Nonlocal(self, node: ast.Nonlocal) -> ast.stmt:
        return self._record(self.nonlocals, node)

    def _skip(self, node):
        return node

    visit_FunctionDef = visit_AsyncFunctionDef = visit_ClassDef = visit_Lambda = _skip

    def declarations(self) -> List[ast.stmt]:
        decls: List[ast.stmt] = []
        if self.globals:
            decls.append(ast.Global(names=list(self.globals)))
        if self.nonlocals:
            decls.append(ast.Nonlocal(names=list(self.nonlocals)))
        return decls


def _rebinds(var: str, body: Sequence[ast.stmt]) -> bool:
    """Whether any statement in ``body`` assigns or deletes ``var``."""
    for stmt in body:
        for node in ast.walk(stmt):
            if isinstance(node, ast.Name) and node.id == var and isinstance(node.ctx, (ast.Store, ast.Del)):
                return True
    return False


class DispatchGenerator:
    """
    Emits type-dispatch chains and recompiles functions around them.

    Usage:
        >>> gen = DispatchGenerator()
        >>> def total(v):
        ...     acc = 0
        ...     for i in range(len(v)):
        ...         acc += elt(v, i)
        ...     return acc
        >>> fast_total = gen.specialize_function(total, 'v', [list, tuple, object])
        >>> fast_total((1, 2, 3))
        6
    """

    MAX_BRANCHES = 8  # Above this, log a code-size warning

    def __init__(
        self,
        oracle: SubtypeOracle = DEFAULT_ORACLE,
        table: Optional[AccessorTable] = None,
        accessor_names: Iterable[str] = ('elt',),
        max_branches: Optional[int] = None,
        enable_logging: bool = False,
    ):
        self.oracle = oracle
        self.table = table if table is not None else DEFAULT_ACCESSOR_TABLE
        self.accessor_names = tuple(accessor_names)
        if max_branches is not None:
            self.MAX_BRANCHES = max_branches
        self.stats = {
            'dispatches_generated': 0,
            'branches_emitted': 0,
            'accesses_rewritten': 0,
        }

        if enable_logging:
            logging.basicConfig(level=logging.DEBUG)

    def generate(
        self,
        var: str,
        types: Sequence[Any],
        body: Union[str, Sequence[ast.stmt]],
    ) -> GeneratedDispatch:
        """
        Build the dispatch chain for ``var`` over ``types``.

        ``types`` must already be simplified and exhaustive; branches are
        emitted in exactly that order.
        """
        if not types:
            raise SpecializationError("cannot dispatch over an empty type list")
        template = _parse_body(body)
        if not template:
            raise SpecializationError("cannot dispatch with an empty body")
        if _rebinds(var, template):
            logger.warning(
                f"Dispatch body rebinds {var!r}; its narrowed type is not "
                f"reliable after the assignment"
            )
        if len(types) > self.MAX_BRANCHES:
            logger.warning(
                f"Dispatch on {var!r} emits {len(types)} copies of the body "
                f"(limit {self.MAX_BRANCHES})"
            )

        with Timer() as timer:
            bindings: Dict[str, Any] = {
                TYPES_NAME: tuple(types),
                UNMATCHED_NAME: UnmatchedTypeError,
            }
            branches: List[DispatchBranch] = []
            tests: List[ast.expr] = []
            for i, t in enumerate(types):
                test_name = f'__typecase_t{i}__'
                runtime_test = self.oracle.runtime_test(t)
                bindings[test_name] = runtime_test
                tests.append(self._test_expr(var, test_name, runtime_test))
                branches.append(self._specialize_body(var, t, template))

            orelse: List[ast.stmt] = [self._unmatched_stmt(var)]
            for test, branch in reversed(list(zip(tests, branches))):
                orelse = [ast.If(test=test, body=branch.body, orelse=orelse)]
            node = orelse[0]
            ast.fix_missing_locations(node)

        self.stats['dispatches_generated'] += 1
        self.stats['branches_emitted'] += len(branches)
        logger.debug(
            f"Generated {len(branches)} branch(es) on {var!r} in "
            f"{format_ns(timer.elapsed_ns)}: "
            + ', '.join(f"{format_type(b.type)}->{b.accessor_name}" for b in branches)
        )
        return GeneratedDispatch(var=var, node=node, branches=branches, bindings=bindings)

    def _specialize_body(self, var: str, t: Any, template: List[ast.stmt]) -> DispatchBranch:
        accessor = self.table.lookup(t)
        rewriter = ElementAccessRewriter(var, accessor, self.accessor_names, self.stats)
        body = [rewriter.visit(copy.deepcopy(stmt)) for stmt in template]
        return DispatchBranch(type=t, body=body, accessor_name=accessor.name)

    @staticmethod
    def _test_expr(var: str, test_name: str, runtime_test: Any) -> ast.expr:
        if is_class_test(runtime_test):
            func = ast.Name(id='isinstance', ctx=ast.Load())
            args = [ast.Name(id=var, ctx=ast.Load()), ast.Name(id=test_name, ctx=ast.Load())]
        else:
            func = ast.Name(id=test_name, ctx=ast.Load())
            args = [ast.Name(id=var, ctx=ast.Load())]
        return ast.Call(func=func, args=args, keywords=[])

    @staticmethod
    def _unmatched_stmt(var: str) -> ast.stmt:
        return ast.Raise(
            exc=ast.Call(
                func=ast.Name(id=UNMATCHED_NAME, ctx=ast.Load()),
                args=[ast.Name(id=var, ctx=ast.Load()), ast.Name(id=TYPES_NAME, ctx=ast.Load())],
                keywords=[],
            ),
            cause=None,
        )

    # ------------------------------------------------------------------
    # Function recompilation
    # ------------------------------------------------------------------

    def _function_tree(self, func: Callable, var: str, types: Sequence[Any]):
        if not inspect.isfunction(func):
            raise SpecializationError(f"expected a Python function, got {func!r}")
        if func.__code__.co_freevars:
            raise SpecializationError(
                f"cannot specialize {func.__qualname__}: it closes over "
                f"{', '.join(func.__code__.co_freevars)}"
            )
        if var not in inspect.signature(func).parameters:
            raise SpecializationError(
                f"{func.__qualname__} has no parameter named {var!r}"
            )
        try:
            source = textwrap.dedent(inspect.getsource(func))
        except (OSError, TypeError) as e:
            raise SpecializationError(f"source of {func.__qualname__} is unavailable") from e

        tree = ast.parse(source)
        func_def = next(
            (node for node in tree.body
             if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef))
             and node.name == func.__name__),
            None,
        )
        if func_def is None:
            raise SpecializationError(f"cannot locate the definition of {func.__qualname__}")

        # Decorators already ran; re-applying them would recurse.
        func_def.decorator_list = []
        body = func_def.body
        docstring = []
        if (body and isinstance(body[0], ast.Expr)
                and isinstance(body[0].value, ast.Constant)
                and isinstance(body[0].value.value, str)):
            docstring, body = body[:1], body[1:]
        if not body:
            raise SpecializationError(f"{func.__qualname__} has an empty body")

        hoister = _DeclarationHoister()
        body = [hoister.visit(stmt) for stmt in body]
        dispatch = self.generate(var, types, body)
        func_def.body = docstring + hoister.declarations() + [dispatch.node]
        tree.body = [func_def]
        ast.fix_missing_locations(tree)
        return tree, dispatch

    def specialize_function(self, func: Callable, var: str, types: Sequence[Any]) -> Callable:
        """
        Recompile ``func`` with its body dispatched on parameter ``var``.

        The new function shares ``func``'s live module globals; the dispatch
        bindings reach it as closure cells of a factory function, so nothing
        is added to the module. Closures are rejected since their cells
        cannot be rebound.
        """
        tree, dispatch = self._function_tree(func, var, types)

        # Defaults and annotations may name locals of the defining scope;
        # they are copied from the original instead of re-evaluated.
        func_def = tree.body[0]
        args = func_def.args
        args.defaults = []
        args.kw_defaults = [None] * len(args.kwonlyargs)
        for arg in args.posonlyargs + args.args + args.kwonlyargs + [args.vararg, args.kwarg]:
            if arg is not None:
                arg.annotation = None
        func_def.returns = None

        # def __typecase_factory__(<bindings>):
        #     <func_def>
        #     return <name>
        binding_names = list(dispatch.bindings)
        factory = ast.FunctionDef(
            name=FACTORY_NAME,
            args=ast.arguments(
                posonlyargs=[],
                args=[ast.arg(arg=name) for name in binding_names],
                vararg=None,
                kwonlyargs=[],
                kw_defaults=[],
                kwarg=None,
                defaults=[],
            ),
            body=[func_def, ast.Return(value=ast.Name(id=func_def.name, ctx=ast.Load()))],
            decorator_list=[],
            returns=None,
            type_params=[],
        )
        tree.body = [factory]
        ast.fix_missing_locations(tree)

        try:
            code = compile(tree, f'<typecase-dispatch:{func.__name__}>', 'exec')
        except SyntaxError as e:
            raise SpecializationError(
                f"dispatching variant of {func.__qualname__} does not compile: {e.msg}"
            ) from e
        factory_ns: Dict[str, Any] = {}
        exec(code, func.__globals__, factory_ns)
        specialized = factory_ns[FACTORY_NAME](*(dispatch.bindings[n] for n in binding_names))
        specialized.__defaults__ = func.__defaults__
        specialized.__kwdefaults__ = func.__kwdefaults__
        specialized.__annotations__ = dict(func.__annotations__)
        specialized.__doc__ = func.__doc__
        specialized.__qualname__ = func.__qualname__
        specialized.__module__ = func.__module__
        specialized.__typecase_original__ = func
        specialized.__typecase_branches__ = tuple(dispatch.types)
        return specialized

    def get_dispatch_source(self, func: Callable, var: str, types: Sequence[Any]) -> str:
        """Source text of the dispatching variant of ``func``."""
        tree, _ = self._function_tree(func, var, types)
        return ast.unparse(tree)
