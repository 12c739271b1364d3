"""Tag commands for taskflow CLI."""

from cyclopts import App

tag_app = App(name="tag", help="Manage tags")


@tag_app.command
def add(name: str, color: str = "#64748b") -> None:
    """Create a new tag."""
    from taskflow.cli import get_store

    store = get_store()
    tag = store.create_tag(name, color)
    print(f"Created tag {tag.id}: {tag.name}")


@tag_app.command
def rename(tag_id: str, name: str) -> None:
    """Rename a tag."""
    from taskflow.cli import get_store

    store = get_store()
    tag = store.update_tag(tag_id, name=name)
    if tag is None:
        print(f"Tag {tag_id} not found")
        return
    print(f"Renamed tag {tag.id} to {tag.name}")


@tag_app.command
def delete(tag_id: str) -> None:
    """Delete a tag and remove it from everything that uses it."""
    from taskflow.cli import get_store

    store = get_store()
    tag = store.delete_tag(tag_id)
    if tag is None:
        print(f"Tag {tag_id} not found")
        return
    print(f"Deleted tag {tag.name}")


@tag_app.command(name="list")
def list_tags() -> None:
    """List tags with usage counts."""
    from taskflow.cli import get_store

    store = get_store()
    for tag in store.tags:
        count = sum(1 for task in store.tasks if tag.id in task.tags)
        print(f"{tag.id}: {tag.name} {tag.color} ({count} task(s))")
