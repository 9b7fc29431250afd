"""
Minimal view tree the POS screens render into.

Only the shapes the screens need: a Screen holds Sections, a Section holds
rows, text, buttons and text fields. Buttons carry the name of the view
method they trigger instead of a callback so the tree stays plain data.
"""
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field


class Text(BaseModel):
    type: Literal["text"] = "text"
    text: str


class Row(BaseModel):
    type: Literal["row"] = "row"
    label: str
    value: str


class Button(BaseModel):
    type: Literal["button"] = "button"
    title: str
    action: str
    disabled: bool = False


class TextField(BaseModel):
    type: Literal["text_field"] = "text_field"
    label: str
    value: str = ""
    placeholder: Optional[str] = None


Child = Union[Text, Row, Button, TextField]


class Section(BaseModel):
    title: Optional[str] = None
    children: List[Child] = Field(default_factory=list)


class Screen(BaseModel):
    name: str
    title: str
    sections: List[Section] = Field(default_factory=list)

    def section(self, title: str) -> Optional[Section]:
        return next((s for s in self.sections if s.title == title), None)

    def buttons(self) -> List[Button]:
        return [c for s in self.sections for c in s.children if isinstance(c, Button)]

    def button(self, action: str) -> Optional[Button]:
        return next((b for b in self.buttons() if b.action == action), None)

    def texts(self) -> List[str]:
        out = []
        for s in self.sections:
            for c in s.children:
                if isinstance(c, Text):
                    out.append(c.text)
                elif isinstance(c, Row):
                    out.append(f"{c.label}: {c.value}")
        return out


def row(label: str, value) -> Row:
    return Row(label=label, value="" if value is None else str(value))
