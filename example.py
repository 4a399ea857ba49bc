"""Example usage of the jsonmask engine."""

import json
from jsonmask import MaskEngine, EngineConfig, build_schema, to_string

# Public view of an internal invoice object
schema = {
    "type": "object",
    "definitions": {
        "Party": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "country": {"type": "string"}
            }
        }
    },
    "properties": {
        "id": {"type": "string"},
        "total": {"type": "number"},
        "customer": {"$ref": "#/definitions/Party"},
        "payment": {
            "oneOf": [
                {
                    "type": "object",
                    "properties": {"method": {"type": "string"}, "last4": {"type": "string"}},
                    "required": ["last4"]
                },
                {
                    "type": "object",
                    "properties": {"method": {"type": "string"}, "bank": {"type": "string"}},
                    "required": ["bank"]
                }
            ]
        },
        "lineItems": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "sku": {"type": "string"},
                    "quantity": {"type": "integer"}
                }
            }
        },
        "metadata": {
            "type": "object",
            "properties": {},
            "additionalProperties": {"type": "string"}
        }
    }
}

# Internal representation
invoice = {
    "id": "INV-001",
    "internalNotes": "call before shipping",
    "total": 100.00,
    "customer": {"name": "ACME", "country": "NL", "taxId": "NL-0001"},
    "payment": {"method": "card", "last4": "4242", "cardToken": "tok_abc"},
    "lineItems": [
        {"sku": "WIDGET-001", "quantity": 5, "costPrice": 6.10},
        {"sku": "GADGET-002", "quantity": 2, "costPrice": 17.25}
    ],
    "metadata": {"channel": "web", "retries": 3}
}


def main():
    print("=" * 60)
    print("jsonmask - Example")
    print("=" * 60)

    engine = MaskEngine()
    result = engine.mask(schema, invoice)

    if result.matched:
        print(f"\nSummary:")
        print(f"  Fields in input: {result.summary.fields_in_input}")
        print(f"  Fields retained: {result.summary.fields_retained}")
        print(f"  Fields dropped: {result.summary.fields_dropped}")

        print("\n" + "-" * 60)
        print("Masked payload:")
        print(to_string(result, pretty=True))
    else:
        print("\nInvoice was rejected by the schema")


def example_with_reuse():
    """Build the schema once and mask many payloads."""
    print("\n" + "=" * 60)
    print("Example with a reused schema")
    print("=" * 60)

    engine = MaskEngine(EngineConfig(max_depth=64))
    built = build_schema(schema, engine.config)

    for payload in (invoice, {"id": "INV-002", "payment": {"bank": "X", "iban": "NL00"}}, ["not", "an", "object"]):
        result = engine.filter(built, payload)
        print(json.dumps(result.to_dict()))


if __name__ == "__main__":
    main()
    example_with_reuse()
