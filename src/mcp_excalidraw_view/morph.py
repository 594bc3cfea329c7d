"""
In-place patching of ElementTree trees.

``morph(existing, fresh)`` turns ``existing`` into a copy of ``fresh``
while reusing matching nodes, so state that lives on the existing nodes
(animation classes, for instance) survives a full re-render when the
``on_before_el_updated`` hook carries it over.
"""

import copy
import xml.etree.ElementTree as ET
from typing import Callable, Optional

BeforeUpdate = Callable[[ET.Element, ET.Element], Optional[bool]]


def _key(node: ET.Element) -> Optional[str]:
    return node.get("id")


def _replace(from_el: ET.Element, to_el: ET.Element) -> None:
    fresh = copy.deepcopy(to_el)
    from_el.tag = fresh.tag
    from_el.attrib.clear()
    from_el.attrib.update(fresh.attrib)
    from_el.text = fresh.text
    from_el[:] = list(fresh)


def _morph_attributes(from_el: ET.Element, to_el: ET.Element) -> None:
    for name in list(from_el.attrib):
        if name not in to_el.attrib:
            del from_el.attrib[name]
    for name, value in to_el.attrib.items():
        if from_el.get(name) != value:
            from_el.set(name, value)


def _morph_children(from_parent: ET.Element, to_parent: ET.Element, hook: Optional[BeforeUpdate]) -> None:
    keyed: dict[str, ET.Element] = {}
    unkeyed: list[ET.Element] = []
    for child in from_parent:
        key = _key(child)
        if key is not None and key not in keyed:
            keyed[key] = child
        else:
            unkeyed.append(child)

    result = []
    for to_child in to_parent:
        key = _key(to_child)
        match = None
        if key is not None:
            match = keyed.pop(key, None)
        else:
            for i, candidate in enumerate(unkeyed):
                if candidate.tag == to_child.tag and _key(candidate) is None:
                    match = unkeyed.pop(i)
                    break

        if match is None:
            result.append(copy.deepcopy(to_child))
        else:
            _morph_element(match, to_child, hook)
            match.tail = to_child.tail
            result.append(match)

    from_parent[:] = result


def _morph_element(from_el: ET.Element, to_el: ET.Element, hook: Optional[BeforeUpdate]) -> None:
    if hook is not None and hook(from_el, to_el) is False:
        return
    if from_el.tag != to_el.tag:
        _replace(from_el, to_el)
        return
    _morph_attributes(from_el, to_el)
    from_el.text = to_el.text
    _morph_children(from_el, to_el, hook)


def morph(
    from_tree: ET.Element,
    to_tree: ET.Element,
    on_before_el_updated: Optional[BeforeUpdate] = None,
    children_only: bool = False,
) -> ET.Element:
    """Patch ``from_tree`` in place to match ``to_tree`` and return it.

    Children are matched by ``id`` attribute first, then by tag in document
    order. ``on_before_el_updated(existing, incoming)`` runs before each
    matched node is updated; it may edit ``incoming`` or return False to
    leave ``existing`` untouched. ``to_tree`` itself is never modified
    except through the hook.
    """
    if children_only:
        _morph_children(from_tree, to_tree, on_before_el_updated)
    else:
        _morph_element(from_tree, to_tree, on_before_el_updated)
    return from_tree
