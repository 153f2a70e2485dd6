"""
GM TOOLS
--------
Registry values owned by the application, created at startup and cleared at
shutdown:

- ToolRegistry: tools shown in the "GM Tools" scene control group
- SkillNameCache: every skill name known across loaded actors (advisory only,
  used to fill prompt pickers; resolution always reads the store)
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

GM_CONTROL_GROUP = {
    "name": "gm-tools",
    "title": "GM Tools",
    "icon": "fas fa-tools",
    "layer": "controls",
}


@dataclass(frozen=True)
class GMTool:
    name: str
    title: str
    icon: str

    def as_dict(self) -> Dict[str, str]:
        return {"name": self.name, "title": self.title, "icon": self.icon}


class ToolRegistry:
    def __init__(self):
        self._tools: List[GMTool] = []

    def register(self, tool: GMTool) -> GMTool:
        if any(t.name == tool.name for t in self._tools):
            raise ValueError(f"GM tool already registered: {tool.name}")
        self._tools.append(tool)
        return tool

    def get(self, name: str) -> Optional[GMTool]:
        return next((t for t in self._tools if t.name == name), None)

    def tools(self) -> List[GMTool]:
        return list(self._tools)

    def scene_controls(self, is_gm: bool) -> List[Dict[str, Any]]:
        if not is_gm:
            return []
        group = dict(GM_CONTROL_GROUP)
        group["tools"] = [t.as_dict() for t in self._tools]
        return [group]

    def clear(self) -> None:
        self._tools.clear()


class SkillNameCache:
    def __init__(self):
        self._names: List[str] = []

    def rebuild(self, store) -> List[str]:
        self._names = sorted(set(store.all_skill_names()))
        return self.names()

    def names(self) -> List[str]:
        return list(self._names)

    def clear(self) -> None:
        self._names = []
