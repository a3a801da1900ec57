"""
Quick demo script to run the fintrack API locally.

This script starts a local server and shows how to make requests to it.
"""

import uvicorn

if __name__ == "__main__":
    print("=" * 60)
    print("Starting fintrack Backend Demo")
    print("=" * 60)
    print()
    print("📌 API Endpoints:")
    print("   - Health Check:   GET  http://localhost:8000/health")
    print("   - Accounts:       GET  http://localhost:8000/accounts")
    print("   - Transactions:   POST http://localhost:8000/transactions")
    print("   - Summary:        GET  http://localhost:8000/summary")
    print("   - Monthly report: GET  http://localhost:8000/reports/monthly?month=2025-10")
    print("   - Chat (SSE):     POST http://localhost:8000/chat")
    print("   - API Docs:            http://localhost:8000/docs")
    print()
    print("🔐 Authentication:")
    print("   All endpoints (except /health) require:")
    print("   Authorization: Bearer <token>")
    print()
    print("📝 Test with curl:")
    print('   curl -X POST "http://localhost:8000/transactions" \\')
    print('     -H "Authorization: Bearer <token>" \\')
    print('     -H "Content-Type: application/json" \\')
    print('     -d \'{"account_id": "<uuid>", "type": "expense", "category": "food", '
          '"amount": 50000, "date": "2025-10-30"}\'')
    print()
    print("=" * 60)
    print("Starting server on http://localhost:8000")
    print("Press Ctrl+C to stop")
    print("=" * 60)
    print()

    uvicorn.run(
        "fintrack.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
