"""
Dependency container

Wires the bot's components in dependency order: configuration, database,
services, command registry, dispatcher and event handler. Cycles and
unregistered dependencies are reported before anything is built.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, TypeVar

T = TypeVar('T')


@dataclass
class DependencyRegistration:
    """Registered factory and what it depends on"""
    factory: Callable[..., Any]
    dependencies: List[str] = field(default_factory=list)
    instance: Optional[Any] = None
    initialized: bool = False


class DependencyContainer:
    """
    Dependency injection container

    Every dependency is a singleton built on first resolve. Factories receive
    their dependencies as keyword arguments named after the registrations
    they depend on.
    """

    def __init__(self):
        self.logger = logging.getLogger("trrbot.dependency")
        self._registrations: Dict[str, DependencyRegistration] = {}
        self._initializing: Set[str] = set()

    def register_singleton(
        self,
        name: str,
        factory: Callable[..., T],
        dependencies: Optional[List[str]] = None
    ) -> None:
        """
        Register a shared dependency

        Args:
            name: Dependency name
            factory: Callable building the instance
            dependencies: Names passed to ``factory`` as keyword arguments
        """
        if name in self._registrations:
            raise ValueError(f"Dependency '{name}' is already registered")

        self._registrations[name] = DependencyRegistration(factory=factory, dependencies=dependencies or [])
        self.logger.debug(f"Registered dependency: {name}")

    def register_instance(self, name: str, instance: Any) -> None:
        """Register an already built object, e.g. the configuration"""
        self.register_singleton(name, lambda: instance)

    def resolve(self, name: str) -> Any:
        """
        Resolve a dependency

        Args:
            name: Dependency name

        Returns:
            The instance

        Raises:
            ValueError: Not registered
            RuntimeError: Cycle detected or the factory failed
        """
        registration = self._registrations.get(name)
        if registration is None:
            raise ValueError(f"Dependency '{name}' is not registered")

        if registration.initialized:
            return registration.instance

        if name in self._initializing:
            raise RuntimeError(f"Circular dependency detected: {name}")

        self._initializing.add(name)
        try:
            kwargs = {dep: self.resolve(dep) for dep in registration.dependencies}
            registration.instance = registration.factory(**kwargs)
            registration.initialized = True
        except Exception as e:
            self.logger.error(f"Failed to resolve dependency {name}: {e}", exc_info=True)
            raise RuntimeError(f"Failed to resolve dependency '{name}': {e}") from e
        finally:
            self._initializing.discard(name)

        self.logger.debug(f"Resolved dependency: {name}")
        return registration.instance

    def validate_dependencies(self) -> bool:
        """
        Check every dependency is registered and there are no cycles

        Raises:
            RuntimeError: Missing dependency or cycle
        """
        done: Set[str] = set()
        path: List[str] = []

        def visit(node: str) -> None:
            if node in done:
                return
            if node in path:
                cycle = path[path.index(node):] + [node]
                raise RuntimeError(f"Circular dependency detected: {' -> '.join(cycle)}")

            path.append(node)
            for dep in self._registrations[node].dependencies:
                if dep not in self._registrations:
                    raise RuntimeError(f"Dependency '{dep}' is not registered (required by '{node}')")
                visit(dep)
            path.pop()
            done.add(node)

        for name in self._registrations:
            visit(name)

        self.logger.debug("Dependency graph validated")
        return True
