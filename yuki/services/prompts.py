"""
Prompt templates for every model call the service makes.

Templates are plain format strings; callers fill them with ``.format(...)``.
Literal braces in the JSON examples are doubled.
"""

STATEMENT_EXTRACTION_PROMPT = """You are a financial document parser. Extract every transaction from the bank or card statement below.

Return ONLY a JSON array, no prose. Each element must be:
{{
  "date": "YYYY-MM-DD",
  "description": "text as it appears on the statement",
  "amount": -12.34,
  "currency": "ISO 4217 code such as USD",
  "category": "one of the allowed categories",
  "merchant": "merchant name or null"
}}

Rules:
- Expenses, purchases, fees and withdrawals are NEGATIVE amounts.
- Income, deposits, refunds and salary are POSITIVE amounts.
- Dates must be ISO 8601. If a line omits the year, infer it from the statement period or other dates in the document.
- "category" must be exactly one of: {categories}. Use "Other" if none fits.
- Skip balances, totals and summary lines; only individual transactions.
- If the currency is not stated, use {currency}.

Statement:
{text}
"""

RECEIPT_EXTRACTION_PROMPT = """You are a receipt parser. Extract the purchase details from the receipt {source}.

Return ONLY a JSON object, no prose:
{{
  "merchant": "store name",
  "date": "YYYY-MM-DD",
  "items": [
    {{
      "name": "item-name-in-kebab-case",
      "quantity": 1,
      "unit": "each, lb, kg, oz or null",
      "unit_price": 0.00,
      "total_price": 0.00,
      "category": "one of the item categories",
      "brand": "brand or null"
    }}
  ],
  "tax": 0.00,
  "total": 0.00,
  "category": "one of the allowed categories"
}}

Rules:
- Item names are lowercase words joined by hyphens, e.g. "organic-apples", "whole-milk".
- Item "category" must be one of: {item_categories}.
- The receipt "category" must be exactly one of: {categories}. Use "Other" if none fits.
- "total_price" is required for every item; omit items whose price cannot be read.
- All amounts are positive numbers without currency symbols.
- Today is {today}; use it only if the receipt shows no date.
{text_block}"""

DETECT_EXPENSE_PROMPT = """Decide whether the message below records a financial transaction that ALREADY happened.

Today is {today}. Allowed categories: {categories}.

Return ONLY a JSON object:
{{
  "is_transaction": true,
  "date": "YYYY-MM-DD",
  "description": "short description",
  "amount": 20.00,
  "type": "expense or income",
  "category": "one of the allowed categories",
  "merchant": "merchant name or null",
  "confidence": "high, medium or low"
}}

Rules:
- "amount" is the positive magnitude; "type" says whether money left or arrived.
- Resolve relative dates ("yesterday", "last friday") against today.
- Questions about spending ("how much did I spend...?") are NOT transactions.
- Plans, wishes and hypotheticals ("I might buy...", "I want to get...") are NOT transactions.
- When it is not a transaction, return {{"is_transaction": false}}.

Message: {message}
"""

SCHEMA_DESCRIPTION = """SQLite database of a personal ledger.

Table ledger (one row per transaction):
  id TEXT, document_id TEXT NULL, account_id TEXT NULL, date DATE ('YYYY-MM-DD'),
  description TEXT, amount NUMERIC (negative = expense, positive = income),
  currency TEXT, category_id TEXT (references categories.id), merchant TEXT NULL,
  notes TEXT NULL, source TEXT ('document', 'image', 'conversation', 'manual', 'scanned-pdf'),
  created_at DATETIME

Table categories: id TEXT (e.g. 'dining'), name TEXT (e.g. 'Dining'), icon TEXT, color TEXT, is_default BOOLEAN, is_hidden BOOLEAN

Table accounts: id TEXT, name TEXT, type TEXT, institution TEXT NULL, currency TEXT, is_default BOOLEAN

Table currencies: code TEXT, name TEXT, symbol TEXT, rate_to_primary REAL (amount * rate = amount in primary currency), is_primary BOOLEAN

Table receipts: id TEXT, document_id TEXT, ledger_id TEXT NULL, merchant TEXT, date DATE, tax NUMERIC NULL, total NUMERIC, category TEXT, created_at DATETIME

Table purchased_items (individual receipt line items):
  id TEXT, receipt_id TEXT, name TEXT (kebab-case, e.g. 'organic-apples'), quantity REAL,
  unit TEXT NULL, unit_price NUMERIC NULL, total_price NUMERIC, category TEXT NULL
  ('produce', 'dairy', 'meat', 'seafood', 'bakery', 'frozen', 'beverages', 'snacks',
  'pantry', 'household', 'personal_care', 'alcohol', 'other'), brand TEXT NULL, purchased_at DATE

Table documents: id TEXT, filename TEXT, filetype TEXT, document_type TEXT ('statement' or 'receipt'), uploaded_at DATETIME
"""

ANALYZE_QUERY_PROMPT = """You translate questions about personal finances into SQLite queries.

{schema}
Today is {today}.
{history}
Return ONLY a JSON object:
{{
  "needs_data": true,
  "sql_query": "SELECT ...",
  "query_type": "list, aggregate, trend, breakdown or comparison"
}}

Rules:
- Write exactly one read-only SELECT statement. Never modify data.
- Spending is negative amounts: use SUM(-amount) or ABS() with amount < 0 to report spending as positive numbers.
- Join categories on ledger.category_id = categories.id to report category names.
- For item questions ("how much did I spend on milk") search purchased_items.name with LIKE '%milk%'.
- Use date('now', ...) for relative periods.
- Limit listings to 50 rows, newest first.
- If the question needs no data (general advice, small talk), return {{"needs_data": false, "sql_query": null, "query_type": "conversation"}}.

Question: {question}
"""

FORMAT_RESULTS_PROMPT = """You present query results to a user of a personal finance app as response cards.

Question: {question}
SQL: {sql}
Columns: {columns}
Rows ({row_count} total, JSON):
{rows}

Return ONLY a JSON object {{"cards": [...]}} where each card is one of:
{{"type": "text", "content": {{"body": "markdown text"}}}}
{{"type": "chart", "content": {{"chart_type": "pie|bar|line|area", "title": "...", "data": [{{"label": "...", "value": 0}}], "caption": "optional"}}}}
{{"type": "table", "content": {{"title": "...", "columns": ["..."], "rows": [["..."]], "summary": "optional"}}}}
{{"type": "mixed", "content": {{"body": "markdown text", "chart": {{chart content as above}}}}}}

Rules:
- Prefer fewer cards. A question answerable in one card must use one card.
- Lists of transactions or items use a table card; every row has one string per column.
- Use pie or bar for breakdowns and comparisons, line for trends over time, area for cumulative totals.
- A single number or short answer is a text card.
- Report spending as positive amounts with the currency symbol.
- Only use numbers present in the rows.
"""

CONVERSATION_PROMPT = """You are Yuki, a friendly assistant inside a personal finance app.
The user's message does not need their ledger data. Answer briefly and helpfully.
{history}
Return ONLY a JSON object {{"cards": [{{"type": "text", "content": {{"body": "your answer"}}}}]}}.

Message: {question}
"""

CONNECTION_TEST_PROMPT = "Reply with the single word: ok"
