"""
Start Resume Matcher API
"""
import os
import sys
from pathlib import Path

# Add backend to path
backend_root = Path(__file__).parent.parent
sys.path.insert(0, str(backend_root))

# Load environment variables
from dotenv import load_dotenv
env_path = backend_root / ".env"
load_dotenv(dotenv_path=env_path)

provider = os.getenv("LLM_PROVIDER", "gemini").lower()
key_var = "GROQ_API_KEY" if provider == "groq" else "GEMINI_API_KEY"

print("=" * 50)
print("📄 Starting Resume Matcher API")
print("=" * 50)
print(f"✅ DATABASE_URL: {'SET' if os.getenv('DATABASE_URL') else 'NOT SET (in-memory store)'}")
print(f"✅ JWT_SECRET:   {'SET' if os.getenv('JWT_SECRET') else 'NOT SET (insecure default)'}")
print(f"✅ LLM provider: {provider} ({key_var} {'SET' if os.getenv(key_var) else 'NOT SET'})")
print("=" * 50)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "resume_matcher.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "5000")),
        reload=True
    )
