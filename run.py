"""
Local development server for the membership renewal API.

Starts uvicorn with auto-reload and prints the endpoints worth poking at.
"""

import os

import uvicorn

if __name__ == "__main__":
    port = int(os.getenv("PORT", "8000"))
    base = f"http://localhost:{port}"

    print("=" * 60)
    print("Starting CSC Membership Renewal API")
    print("=" * 60)
    print()
    print("📌 API Endpoints:")
    print(f"   - Health Check:      GET  {base}/health")
    print(f"   - Stripe Checkout:   POST {base}/api/create-stripe-checkout")
    print(f"   - Stripe Webhook:    POST {base}/api/stripe-webhook")
    print(f"   - QBO Items:         GET  {base}/api/list-qbo-items")
    print(f"   - QBO Diagnosis:     GET  {base}/api/diagnose-qb")
    print(f"   - Email Test:        GET  {base}/api/test-email?to=you@example.com")
    print(f"   - API Docs:               {base}/docs")
    print()
    print("🔔 Forward Stripe events locally with:")
    print(f"   stripe listen --forward-to {base}/api/stripe-webhook")
    print()
    print("=" * 60)
    print(f"Starting server on {base}")
    print("Press Ctrl+C to stop")
    print("=" * 60)
    print()

    uvicorn.run(
        "renewal_api.main:app",
        host="0.0.0.0",
        port=port,
        reload=True,
        log_level="info"
    )
