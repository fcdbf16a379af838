from abc import ABC, abstractmethod
import weakref


class RendererBase(ABC):
    """Owns one PyVista actor built from a render descriptor.

    The plotter is held through a weakref so a renderer never keeps a
    closed window alive.
    """

    __slots__ = ('_plotter_ref', 'descriptor', 'actor')

    def __init__(self, plotter, descriptor):
        self._plotter_ref = weakref.ref(plotter) if plotter is not None else None
        self.descriptor = descriptor
        self.actor = None

    @property
    def plotter(self):
        """Plotter from the weakref, or None once it has been garbage collected."""
        return self._plotter_ref() if self._plotter_ref is not None else None

    @abstractmethod
    def render(self):
        """Add this renderer's actor to the plotter and return it."""

    def set_visible(self, visible: bool):
        if self.actor is not None:
            self.actor.SetVisibility(bool(visible))

    def clear(self, render: bool = False):
        """Remove the actor from the plotter.

        Args:
            render: Whether to trigger a render after clearing (default False)
        """
        plotter = self.plotter
        if self.actor is not None and plotter is not None:
            try:
                plotter.remove_actor(self.actor, render=render)
            except Exception as e:
                print(f"[{type(self).__name__}] Failed to remove actor: {e}")
        self.actor = None


__all__ = ["RendererBase"]
