"""Basic usage example for annotated JSON serialization.

This example demonstrates how to:
- Mark classes and fields for serialization
- Convert objects to JSON and back
- Use sequence and map fields
- Read polymorphic fields through class tags
"""

import logging
from typing import Annotated, Dict, List, Optional

from annotated_json import JsonConfig, JsonEngine, JsonMap, JsonSerialize, json_serializable
from annotated_json.logging import configure_logging


@json_serializable
class Point:
    x: Annotated[int, JsonSerialize()] = 0
    y: Annotated[int, JsonSerialize()] = 0

    def __init__(self, x: int = 0, y: int = 0):
        self.x = x
        self.y = y

    def __repr__(self):
        return f"Point({self.x}, {self.y})"


@json_serializable(dynamic=True)
class Shape:
    label: Annotated[str, JsonSerialize(name="name")] = ""


class Circle(Shape):
    center: Annotated[Optional[Point], JsonSerialize()] = None
    radius: Annotated[float, JsonSerialize()] = 1.0


class Polygon(Shape):
    corners: Annotated[List[Point], JsonSerialize()]

    def __init__(self):
        self.corners = []


@json_serializable
class Scene:
    shapes: Annotated[List[Shape], JsonSerialize()]
    anchors: Annotated[Dict[str, Point], JsonSerialize(map=JsonMap())]
    # not serialized
    cache: Dict[str, object]

    def __init__(self):
        self.shapes = []
        self.anchors = {}
        self.cache = {}


def main():
    configure_logging(level=logging.DEBUG)

    engine = JsonEngine(JsonConfig(indent=2))

    scene = Scene()

    circle = Circle()
    circle.label = "sun"
    circle.center = Point(10, 10)
    circle.radius = 4.5
    scene.shapes.append(circle)

    triangle = Polygon()
    triangle.label = "roof"
    triangle.corners.extend([Point(0, 0), Point(4, 0), Point(2, 3)])
    scene.shapes.append(triangle)

    scene.anchors["origin"] = Point()
    scene.cache["ignored"] = object()

    text = engine.to_json(scene)
    print("Serialized scene:")
    print(text)

    restored = JsonEngine().from_json(Scene, text)
    print("\nRestored shapes:")
    for shape in restored.shapes:
        print(f"  {type(shape).__name__} {shape.label!r}")
    print(f"Anchors: {restored.anchors}")


if __name__ == "__main__":
    main()
