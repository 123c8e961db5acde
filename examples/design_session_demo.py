#!/usr/bin/env python3
"""
Example: Sketching and Pricing a Drainage Design

This script demonstrates how to use an editing session to:
1. Sketch HydroBlox runs and place boxes with the drawing tools
2. Mark existing infrastructure as failed
3. Price the design with an itemised breakdown
4. Save the project and reload it

Run:
    python examples/design_session_demo.py
"""

import asyncio
import tempfile
from pathlib import Path

from drainsketch.core.interaction import ToolType
from drainsketch.core.session import EditorSession
from drainsketch.core.storage import JsonFileProjectStore


async def design_session_example(projects_dir: Path):
    """Example: sketch, price, save and reload a design."""
    print("=" * 60)
    print("Drainage Design Session Example")
    print("=" * 60)

    session = EditorSession(JsonFileProjectStore(base_dir=projects_dir), debounce_seconds=0.5)
    controller = session.controller

    # Back-yard run along the fence, with a parallel row beside it
    print("\n[1] Sketching lines...")
    for tool, coordinates in [
        (ToolType.HYDROBLOX_RUN, [[-80.9270, 29.0258], [-80.9270, 29.0264], [-80.9265, 29.0266]]),
        (ToolType.PARALLEL_ROW, [[-80.92705, 29.0258], [-80.92705, 29.0264]]),
        (ToolType.EXISTING_PIPE, [[-80.9268, 29.0255], [-80.9262, 29.0255]]),
    ]:
        controller.select_tool(tool)
        controller.handle_created([{"id": "sketch", "geometry": {"type": "LineString", "coordinates": coordinates}}])

    print("[2] Placing boxes...")
    controller.select_tool(ToolType.TRANSITION_BOX)
    controller.handle_map_click(-80.9270, 29.0264)
    controller.select_tool(ToolType.STORMWATER_BOX)
    controller.handle_map_click(-80.9265, 29.0266)

    pipe = session.model.features_by_type(ToolType.EXISTING_PIPE.element_type)[0]
    print(f"[3] Marking {pipe.id} as {controller.handle_alternate_click(pipe.id).value}")

    print(f"\n{'MAP LABELS':^60}")
    print("-" * 60)
    for rendered in session.rendering.rendered:
        flag = "  (alert)" if rendered.alert else ""
        print(f"  {rendered.id:<28} {rendered.display_text}{flag}")

    print(f"\n{'QUOTE':^60}")
    print("-" * 60)
    summary = session.quote()
    for item in summary.line_items():
        print(f"  {item.label:<20} {item.detail:<22} ${item.cost:,}")
    print(f"  {'Total':<43} ${summary.total:,}")
    if summary.is_promo:
        print(f"  Promotional pricing saves ${summary.savings:,}")

    print(f"\n{'SAVE':^60}")
    print("-" * 60)
    session.update_details(name="Smith Residence", address="123 Main St, New Smyrna Beach, FL")
    result = await session.save_now()
    print(f"  Saved: {result.success} (id {session.project_id})")

    project_id = session.project_id
    session.reset()
    record = await session.load(project_id)
    print(f"  Reloaded {record.name!r} with {len(session.model)} features")
    print(f"  Map bounds: {session.bounds}")

    await session.close()


if __name__ == "__main__":
    with tempfile.TemporaryDirectory() as tmp:
        asyncio.run(design_session_example(Path(tmp)))
