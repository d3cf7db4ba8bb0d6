"""In-page scripts evaluated through the driver.

Each script is a single arrow function receiving one JSON argument. Scripts
that surface elements tag them with a ``data-ref`` id during the same
traversal, so the ids they report are the ids set in the page. They receive
the first free index as ``nextRef`` and return the first index they left
unused. No script returns element handles.
"""

# Shared allocator: ids already in the document push the counter past them, and
# an id carried by more than one element (cloned nodes) is kept only by the
# first one in document order.
_REF_ALLOCATOR = """
  const createRefAllocator = (refAttribute, refPrefix, nextRef) => {
    let next = nextRef;
    const owners = new Set();
    for (const el of document.querySelectorAll(`[${refAttribute}]`)) {
      const ref = el.getAttribute(refAttribute);
      if (owners.has(ref)) {
        el.removeAttribute(refAttribute);
        continue;
      }
      owners.add(ref);
      if (ref.startsWith(refPrefix)) {
        const suffix = ref.slice(refPrefix.length);
        if (/^\\d+$/.test(suffix)) next = Math.max(next, Number(suffix) + 1);
      }
    }
    return {
      refFor(el) {
        let ref = el.getAttribute(refAttribute);
        if (!ref) {
          ref = refPrefix + next;
          next += 1;
          el.setAttribute(refAttribute, ref);
        }
        return ref;
      },
      get next() {
        return next;
      },
    };
  };
"""

_IS_HIDDEN = """
  const isHidden = (el) => {
    const style = window.getComputedStyle(el);
    return style.display === 'none' || style.visibility === 'hidden';
  };
"""

COLLECT_TREE_SCRIPT = (
    "({ maxDepth, interactiveOnly, startRef, refAttribute, refPrefix, nextRef }) => {"
    + _REF_ALLOCATOR
    + _IS_HIDDEN
    + """
  const INTERACTIVE_TAGS = ['A', 'BUTTON', 'INPUT', 'SELECT', 'TEXTAREA'];
  const refs = createRefAllocator(refAttribute, refPrefix, nextRef);

  const isInteractive = (el) =>
    INTERACTIVE_TAGS.includes(el.tagName) ||
    el.onclick !== null ||
    el.getAttribute('role') === 'button' ||
    el.getAttribute('tabindex') !== null;

  const visit = (el, depth) => {
    if (depth > maxDepth) return [];
    if (isHidden(el)) return [];
    const children = Array.from(el.children);
    if (interactiveOnly && !isInteractive(el)) {
      return children.flatMap((child) => visit(child, depth));
    }
    const ref = refs.refFor(el);
    return [{
      depth,
      tag: el.tagName,
      role: el.getAttribute('role'),
      ariaLabel: el.getAttribute('aria-label'),
      alt: el.getAttribute('alt'),
      title: el.getAttribute('title'),
      text: (el.textContent || '').trim().slice(0, 200),
      ref,
      children: children.flatMap((child) => visit(child, depth + 1)),
    }];
  };

  let root = document.body;
  if (startRef) {
    const found = document.querySelector(`[${refAttribute}="${CSS.escape(startRef)}"]`);
    if (found && document.body.contains(found)) root = found;
  }
  const nodes = root ? visit(root, 0) : [];
  return { nodes, nextRef: refs.next };
}
"""
)

FIND_SCRIPT = (
    "({ query, limit, refAttribute, refPrefix, nextRef }) => {"
    + _REF_ALLOCATOR
    + _IS_HIDDEN
    + """
  const needle = query.toLowerCase();
  const refs = createRefAllocator(refAttribute, refPrefix, nextRef);
  const matches = [];

  const classText = (el) => {
    const value = el.className;
    if (typeof value === 'string') return value;
    if (value && typeof value.baseVal === 'string') return value.baseVal;
    return '';
  };

  const isMatch = (el) => [
    el.textContent || '',
    el.getAttribute('aria-label') || '',
    el.getAttribute('placeholder') || '',
    el.getAttribute('title') || '',
    el.id || '',
    classText(el),
  ].some((value) => value.toLowerCase().includes(needle));

  const traverse = (el) => {
    if (matches.length >= limit || isHidden(el)) return;
    if (isMatch(el)) {
      const rect = el.getBoundingClientRect();
      matches.push({
        ref: refs.refFor(el),
        tag: el.tagName.toLowerCase(),
        text: (el.textContent || '').trim().slice(0, 100),
        role: el.getAttribute('role'),
        rect: { x: rect.x, y: rect.y, width: rect.width, height: rect.height },
      });
    }
    for (const child of el.children) {
      if (matches.length >= limit) break;
      traverse(child);
    }
  };

  if (document.body) traverse(document.body);
  return { matches, nextRef: refs.next };
}
"""
)

PAGE_TEXT_SCRIPT = """
() => {
  const BLOCK_TAGS = ['P', 'DIV', 'H1', 'H2', 'H3', 'H4', 'H5', 'H6', 'LI', 'TR'];
  const content = document.querySelector('article') || document.querySelector('main') || document.body;

  const extract = (el) => {
    let text = '';
    for (const node of el.childNodes) {
      if (node.nodeType === Node.TEXT_NODE) {
        text += (node.textContent || '').trim() + ' ';
      } else if (node.nodeType === Node.ELEMENT_NODE) {
        const style = window.getComputedStyle(node);
        if (style.display === 'none' || style.visibility === 'hidden') continue;
        if (BLOCK_TAGS.includes(node.tagName)) {
          text += '\\n' + extract(node) + '\\n';
        } else {
          text += extract(node);
        }
      }
    }
    return text;
  };

  return content ? extract(content).replace(/\\n{3,}/g, '\\n\\n').trim() : '';
}
"""

FORM_INPUT_SCRIPT = """
({ selector, value }) => {
  const el = document.querySelector(selector);
  if (!el) return null;
  const fire = (type) => el.dispatchEvent(new Event(type, { bubbles: true }));
  const truthy = (val) => typeof val === 'string'
    ? !['', 'false', '0', 'off', 'no'].includes(val.trim().toLowerCase())
    : Boolean(val);

  if (el.type === 'checkbox' || el.type === 'radio') {
    el.checked = truthy(value);
    fire('change');
    return el.type;
  }
  if (el.tagName === 'SELECT') {
    el.value = String(value);
    fire('change');
    return 'select';
  }
  el.value = String(value);
  fire('input');
  fire('change');
  return 'text';
}
"""

CURSOR_SCRIPT = """
({ x, y }) => {
  let cursor = document.getElementById('webpilot-cursor');
  if (!cursor) {
    cursor = document.createElement('div');
    cursor.id = 'webpilot-cursor';
    cursor.style.cssText = [
      'position: fixed', 'width: 20px', 'height: 20px', 'border-radius: 50%',
      'background: radial-gradient(circle, #0066FF 30%, transparent 70%)',
      'border: 2px solid white', 'pointer-events: none', 'z-index: 2147483647',
      'box-shadow: 0 0 15px rgba(0, 102, 255, 0.6)', 'transition: all 0.1s ease',
    ].join(';');
    document.documentElement.appendChild(cursor);
  }
  cursor.style.left = `${x - 10}px`;
  cursor.style.top = `${y - 10}px`;
}
"""
