import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional


# Noise patterns to filter out (case-insensitive)
NOISE_PATTERNS = [
    r'\bchange\b',
    r'\btender\b',
    r'\bcash\b',
    r'\bcredit\b',
    r'\bdebit\b',
    r'\bvisa\b',
    r'\bmastercard\b',
    r'\bamex\b',
    r'^food$',                          # Line that just says "food"
    r'^drink',                          # Line that just says "drink/drinks"
    r'\d{1,2}[-/]\d{1,2}[-/]\d{2,4}',  # Dates (MM/DD/YYYY)
    r'\d{3}[-.:]\d{3}[-.:]\d{4}',      # Phone numbers (including colon and dot)
    r'card\s*#',
    r'receipt\s*#',
    r'transaction\s*#',
    r'thank\s*you',
    r'www\.',                           # URLs
    r'\.com',                           # Domain names
    r'tbl\s+\d+',                       # Table numbers
    r'ch\s+\d+',                        # Check numbers
    r'gst\s+\d+',                       # Guest numbers
    r'\bserver\b',
]

# Summary lines, checked in this order ("subtotal" before "total")
TOTAL_LINE_PATTERNS = [
    ('subtotal', r'sub\s*-?\s*total'),
    ('tax', r'\b(?:sales\s+)?tax\b|\bvat\b|\bhst\b'),
    ('tip', r'\btip\b|gratuity|service\s+charge'),
    ('total', r'\btotal\b|amount\s+due|balance\s+due'),
]

# Price detection patterns (in order of preference)
PRICE_PATTERNS = [
    r'\$\s?(\d{1,3}(?:,\d{3})*\.\d{2})',           # $12.99 or $ 12.99
    r'(\d{1,3}(?:,\d{3})*\.\d{2})\s?(?:USD|usd)',  # 12.99 USD
    r'(?<!\d[-.:\d])(\d{1,3}\.\d{2})(?!\d)',       # 12.99 (not part of phone/longer number)
]

# Quantity markers: "2x Wings", "2 x Wings", "Wings x2", "2 Wings"
QUANTITY_PATTERNS = [
    r'^(\d{1,2})\s*[xX@]\s+(.+)$',
    r'^(\d{1,2})[xX](.+)$',
    r'^(.+?)\s+[xX]\s?(\d{1,2})$',
    r'^(\d{1,2})\s+([A-Za-z].*)$',
]

MAX_QUANTITY = 50
MIN_ITEM_PRICE = Decimal("0.01")
MAX_ITEM_PRICE = Decimal("999.99")
CENT = Decimal("0.01")


def parse_receipt(vision_response) -> dict:
    """
    Parse a Google Cloud Vision response into receipt lines and totals.

    Args:
        vision_response: AnnotateImageResponse with a text_annotations list

    Returns:
        dict with restaurant_name, items, subtotal, tax, tip, total and raw_text.
        Each item is {"description", "quantity", "unit_price", "total_price"} in dollars.
    """
    if not vision_response or not vision_response.text_annotations:
        return parse_receipt_text("")
    return parse_receipt_text(vision_response.text_annotations[0].description)


def parse_receipt_text(full_text: str) -> dict:
    """Parse the full OCR text of a receipt, line by line."""
    lines = [line.strip() for line in full_text.split('\n')]
    totals = {'subtotal': None, 'tax': None, 'tip': None, 'total': None}
    items = []

    # First pass: same-line item/price pairs (e.g., "2 Burger $25.98")
    for line in lines:
        if not line:
            continue
        kind = classify_total_line(line)
        if kind:
            _, price = extract_price(line)
            if price is not None and totals[kind] is None:
                totals[kind] = price
            continue
        if is_noise_line(line):
            continue

        price_match, price = extract_price(line)
        if price_match and price is not None and MIN_ITEM_PRICE <= price <= MAX_ITEM_PRICE:
            item = build_item(line[:price_match.start()], price)
            if item:
                items.append(item)

    # Fall back to descriptions and prices on separate lines
    if not items:
        items = _parse_multiline_items(lines)

    subtotal = totals['subtotal']
    if subtotal is None:
        subtotal = sum((Decimal(str(i['total_price'])) for i in items), Decimal("0"))
    tax = totals['tax'] or Decimal("0")
    tip = totals['tip'] or Decimal("0")
    total = totals['total']
    if total is None:
        total = subtotal + tax + tip

    return {
        'restaurant_name': detect_restaurant_name(lines),
        'items': items,
        'subtotal': float(subtotal),
        'tax': float(tax),
        'tip': float(tip),
        'total': float(total),
        'raw_text': full_text,
    }


def _parse_multiline_items(lines: list[str]) -> list[dict]:
    items = []
    pending_description = None
    for line in lines:
        if not line or classify_total_line(line) or is_noise_line(line):
            continue

        price_match, price = extract_price(line)
        if price_match and price is not None and MIN_ITEM_PRICE <= price <= MAX_ITEM_PRICE:
            non_price_text = line[:price_match.start()].strip()
            if len(non_price_text) < 3 and pending_description:
                # Price-only line, pair with pending description
                item = build_item(pending_description, price)
            else:
                item = build_item(non_price_text, price)
            if item:
                items.append(item)
            pending_description = None
        else:
            # No price - remember as a potential description (only the last one)
            if len(clean_description(line)) >= 2:
                pending_description = line
    return items


def build_item(text: str, price: Decimal) -> Optional[dict]:
    """Receipt line from the text before the price; None if no usable description."""
    quantity, description = extract_quantity(text.strip())
    description = clean_description(description)
    if not description or len(description) < 2:
        return None
    unit_price = (price / quantity).quantize(CENT, rounding=ROUND_HALF_UP)
    return {
        'description': description,
        'quantity': quantity,
        'unit_price': float(unit_price),
        'total_price': float(price),
    }


def classify_total_line(text: str) -> Optional[str]:
    """'subtotal', 'tax', 'tip' or 'total' for summary lines, else None."""
    for kind, pattern in TOTAL_LINE_PATTERNS:
        if re.search(pattern, text, re.I):
            return kind
    return None


def is_noise_line(text: str) -> bool:
    for pattern in NOISE_PATTERNS:
        if re.search(pattern, text, re.I):
            return True
    return False


def extract_price(text: str) -> tuple:
    """
    Extract a price from text using multiple patterns.

    Returns:
        Tuple of (match_object, Decimal dollars), or (None, None) if no price found
    """
    for pattern in PRICE_PATTERNS:
        match = re.search(pattern, text)
        if match:
            price_str = match.group(1).replace(',', '')
            return (match, Decimal(price_str))
    return (None, None)


def extract_quantity(text: str) -> tuple[int, str]:
    """
    Split a leading or trailing quantity marker off a description.

    Returns:
        (quantity, description); quantity is 1 when no marker is found
    """
    for pattern in QUANTITY_PATTERNS:
        match = re.match(pattern, text)
        if not match:
            continue
        first, second = match.group(1), match.group(2)
        if first.isdigit():
            quantity, description = int(first), second
        else:
            quantity, description = int(second), first
        if 1 <= quantity <= MAX_QUANTITY:
            return quantity, description
    return 1, text


def clean_description(text: str) -> str:
    """Strip trailing separators, collapse whitespace and title-case."""
    text = re.sub(r'[\s\-*.:]+$', '', text)
    text = ' '.join(text.split())
    return text.strip().title()


def detect_restaurant_name(lines: list[str]) -> Optional[str]:
    """First plausible header line: no price, not noise, has some letters."""
    for line in lines[:5]:
        if not line or classify_total_line(line) or is_noise_line(line):
            continue
        if extract_price(line)[0]:
            continue
        if len(re.findall(r'[A-Za-z]', line)) >= 3:
            return clean_description(line)
    return None
