"""
Run the prompt agent API with Waitress WSGI server (production-grade, no reloader)
"""
import os
from waitress import serve
from main import app

if __name__ == '__main__':
    port = int(os.getenv('PORT', '8888'))
    print("\n" + "="*70)
    print(f"Starting Prompt Agent API with Waitress on port {port}")
    print("="*70 + "\n")

    serve(app, host='0.0.0.0', port=port, threads=4)
