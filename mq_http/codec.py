"""XML encoding and decoding of MQ request and response documents."""
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

NAMESPACE = "http://mq.aliyuncs.com/doc/v1/"


@dataclass(frozen=True)
class PlainText:
  """Text of an element without attributes."""
  text: str

  def value(self) -> str:
    return self.text


@dataclass(frozen=True)
class AttributedText:
  """Text of an element that also carries attributes."""
  text: str
  attributes: Dict[str, str] = field(default_factory=dict)

  def value(self) -> str:
    return self.text


TextNode = Union[PlainText, AttributedText]


def local_name(tag: str) -> str:
  """Strip the `{namespace}` prefix ElementTree puts on qualified tags."""
  return tag.rsplit("}", 1)[-1]


def text_node(element: ET.Element) -> TextNode:
  text = element.text or ""
  if element.attrib:
    return AttributedText(text, dict(element.attrib))
  return PlainText(text)


def _element_value(element: ET.Element) -> Any:
  if len(element):
    return element_to_mapping(element)
  return text_node(element).value()


def element_to_mapping(element: ET.Element) -> Dict[str, Any]:
  """Flatten the children of `element` into a mapping.

  Leaf children become their text, nested children become mappings and a
  tag seen more than once collects its values into a list. Attributes are
  never copied as fields.
  """
  result: Dict[str, Any] = {}
  for child in element:
    key = local_name(child.tag)
    value = _element_value(child)
    if key not in result:
      result[key] = value
    elif isinstance(result[key], list):
      result[key].append(value)
    else:
      result[key] = [result[key], value]
  return result


def as_list(value: Any) -> List[Any]:
  """Normalize an optional or single value into a list."""
  if value is None or value == "":
    return []
  if isinstance(value, list):
    return value
  return [value]


def parse(data: Union[bytes, str]) -> ET.Element:
  return ET.fromstring(data)


def find_element(root: ET.Element, name: str) -> Optional[ET.Element]:
  """Return the root if it is named `name`, else its first direct child of that name.

  Namespaces are ignored. Deeper elements are never matched.
  """
  if local_name(root.tag) == name:
    return root
  for child in root:
    if local_name(child.tag) == name:
      return child
  return None


def _document(root: ET.Element) -> bytes:
  # ElementTree leaves \r raw in text and parsers normalize it to \n
  return ET.tostring(root, encoding="utf-8", xml_declaration=True).replace(b"\r", b"&#13;")


def to_xml(root_tag: str, fields: Dict[str, Optional[str]]) -> bytes:
  """Serialize `fields` as children of a namespaced `root_tag` document.

  Fields whose value is None are left out.
  """
  root = ET.Element(root_tag, xmlns=NAMESPACE)
  for key, value in fields.items():
    if value is None:
      continue
    ET.SubElement(root, key).text = str(value)
  return _document(root)


def list_to_xml(root_tag: str, items: Iterable[str], item_tag: str) -> bytes:
  """Serialize `items` as repeated `item_tag` children of `root_tag`."""
  root = ET.Element(root_tag, xmlns=NAMESPACE)
  for item in items:
    ET.SubElement(root, item_tag).text = str(item)
  return _document(root)
