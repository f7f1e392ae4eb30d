#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Some useful functions for parsing XML file types.

Note we need to name this `xml_reading` so as not to clobber the standard
library package.

"""
from xml.etree.ElementTree import iterparse


def gen_nodes(source, node_names, *, with_root=False):
    """Efficiently iterate over specific nodes of an XML document.

    Nodes are yielded on their 'end' event, i.e. fully built. The root is
    cleared after each yielded node so memory stays flat for large files.

    http://effbot.org/zone/element-iterparse.htm
    """
    context = iter(iterparse(source, events=('start', 'end')))
    event, root = next(context)  # get the root element

    if with_root:
        yield root

    for event, element in context:
        if event == 'end' and sans_ns(element.tag) in node_names:
            yield element
            root.clear()


def sans_ns(tag):
    """Remove the namespace (``{uri}Tag``) or prefix (``ns3:Tag``) from a tag."""
    return tag.split('}')[-1].split(':')[-1]


def find_child(element, name):
    """First direct child of `element` with local name `name` (or None)."""
    name = sans_ns(name)
    for child in element:
        if sans_ns(child.tag) == name:
            return child
    return None


def find_node(element, path):
    """Walk a sequence of local names down from `element`."""
    node = element
    for name in path:
        node = find_child(node, name)
        if node is None:
            return None
    return node


def find_text(element, path):
    """Stripped text at the end of `path`, or None if absent or empty."""
    node = find_node(element, path)
    if node is None or node.text is None:
        return None
    text = node.text.strip()
    return text or None


def first_text(element, candidates):
    """Try each candidate path in order and return the first text found.

    This is how vendor extensions are probed: a direct field first, then
    the same quantity under ``Extensions/LX`` or ``Extensions/TPX``.
    """
    for path in candidates:
        text = find_text(element, path)
        if text is not None:
            return text
    return None
