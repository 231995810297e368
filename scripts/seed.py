#!/usr/bin/env python3
"""
=============================================================================
CodeCrew - Demo Data Seeder
=============================================================================
Wipes the database and recreates demo users, the classification tree and
ten sample problems.
Usage: python scripts/seed.py
=============================================================================
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from slugify import slugify

from codecrew.database import get_db_context, init_db
from codecrew.db_models import (
    DBUser, DBDomain, DBSubdomain, DBCategory, DBTechStack, DBLanguage, DBTopic,
    DBProblem, DBAnswer, DBComment, DBVote, DBBookmark,
)

USERS = [
    {
        "key": "admin",
        "name": "Admin User",
        "email": "admin@studenthub.com",
        "password": "admin123",
        "roles": ["user", "admin"],
        "bio": "Platform administrator",
    },
    {
        "key": "alice",
        "name": "Alice Johnson",
        "email": "alice@example.com",
        "password": "test123",
        "roles": ["user"],
        "bio": "Full-stack developer passionate about React and Node.js",
    },
    {
        "key": "bob",
        "name": "Bob Smith",
        "email": "bob@example.com",
        "password": "test123",
        "roles": ["user"],
        "bio": "Python enthusiast and data science learner",
    },
]

# domain -> subdomain -> category -> tech stack -> languages
CLASSIFICATION_TREE = {
    "Web Development": {
        "description": "Everything related to web development",
        "subdomains": {
            "Frontend": {
                "UI & CSS": {
                    "React": ["JavaScript", "TypeScript"],
                    "Vue.js": [],
                },
            },
            "Backend": {
                "API Development": {
                    "Node.js": [],
                },
            },
        },
    },
    "Data Science": {
        "description": "Data analysis, machine learning, and AI",
        "subdomains": {
            "Machine Learning": {
                "Data Analysis": {
                    "Python": [],
                },
            },
        },
    },
    "Mobile Development": {
        "description": "iOS and Android app development",
        "subdomains": {
            "Cross-Platform": {
                "Mobile Frameworks": {
                    "React Native": [],
                },
            },
        },
    },
}

# Classification references use node names; they are resolved to ids when seeding
PROBLEMS = [
    {
        "title": "State not updating in React due to direct mutation",
        "description_markdown": (
            "# Problem\nA common mistake in React is mutating state objects directly instead of "
            "creating a new object.\n\n## Example\n```javascript\n"
            "const [user, setUser] = useState({ name: 'John', age: 30 });\n"
            "user.age = 31;\nsetUser(user); // React won't detect this\n```\n\n"
            "## Solution\n```javascript\nsetUser({ ...user, age: 31 });\n```"
        ),
        "creator": "admin",
        "severity": "HIGH",
        "difficulty": "BEGINNER",
        "canonical": True,
        "solved": True,
        "upvotes": 150,
        "tags": ["react", "state", "hooks", "immutable"],
        "domain": "Web Development",
        "subdomain": "Frontend",
        "category": "UI & CSS",
        "tech_stack": "React",
    },
    {
        "title": "CORS errors when calling API from frontend",
        "description_markdown": (
            "# Problem\nGetting CORS errors when making API calls from frontend to backend.\n\n"
            "## Solution\n```javascript\nconst cors = require('cors');\n"
            "app.use(cors({ origin: 'http://localhost:3000', credentials: true }));\n```"
        ),
        "creator": "alice",
        "severity": "HIGH",
        "difficulty": "INTERMEDIATE",
        "canonical": True,
        "solved": True,
        "upvotes": 200,
        "tags": ["cors", "api", "http", "security"],
        "domain": "Web Development",
    },
    {
        "title": "Vue 3 Composition API vs Options API",
        "description_markdown": (
            "# Question\nWhen should I use Composition API vs Options API in Vue 3?\n\n"
            "## Composition API\nBetter for complex logic and reusability.\n\n"
            "## Options API\nBetter for simple components and Vue 2 migration."
        ),
        "creator": "bob",
        "severity": "MEDIUM",
        "difficulty": "INTERMEDIATE",
        "upvotes": 45,
        "tags": ["vue", "composition-api", "best-practices"],
        "domain": "Web Development",
        "tech_stack": "Vue.js",
    },
    {
        "title": "MongoDB connection timeout in production",
        "description_markdown": (
            "# Problem\nMongoDB connects locally but times out in production.\n\n"
            "## Solutions\n1. Add server IP to MongoDB Atlas whitelist\n"
            "2. Check connection string parameters\n3. Verify environment variables"
        ),
        "creator": "admin",
        "severity": "CRITICAL",
        "difficulty": "ADVANCED",
        "upvotes": 30,
        "tags": ["mongodb", "database", "production"],
        "domain": "Web Development",
        "tech_stack": "Node.js",
    },
    {
        "title": "TypeScript Generic Constraints",
        "description_markdown": (
            "# Problem\nHow to properly constrain TypeScript generics?\n\n## Solution\n```typescript\n"
            "function filter<T, K extends keyof T>(items: T[], key: K, value: T[K]): T[] {\n"
            "  return items.filter(item => item[key] === value);\n}\n```"
        ),
        "creator": "alice",
        "severity": "MEDIUM",
        "difficulty": "ADVANCED",
        "canonical": True,
        "solved": True,
        "upvotes": 88,
        "tags": ["typescript", "generics", "type-safety"],
        "domain": "Web Development",
        "language": "TypeScript",
    },
    {
        "title": "Python Pandas GroupBy for Data Aggregation",
        "description_markdown": (
            "# Question\nHow to use pandas groupby() for multiple aggregations?\n\n## Solution\n"
            "```python\nresult = df.groupby('region').agg({\n    'sales': 'sum',\n    'price': 'mean'\n})\n```"
        ),
        "creator": "bob",
        "severity": "MEDIUM",
        "difficulty": "INTERMEDIATE",
        "solved": True,
        "upvotes": 65,
        "tags": ["python", "pandas", "data-analysis"],
        "domain": "Data Science",
        "tech_stack": "Python",
    },
    {
        "title": "React Native FlatList performance issues",
        "description_markdown": (
            "# Problem\nFlatList becomes slow with large datasets.\n\n## Solutions\n"
            "1. Use `getItemLayout` for fixed-size items\n2. Implement pagination\n"
            "3. Use React.memo for list items"
        ),
        "creator": "alice",
        "severity": "HIGH",
        "difficulty": "INTERMEDIATE",
        "upvotes": 42,
        "tags": ["react-native", "performance", "flatlist"],
        "domain": "Mobile Development",
        "tech_stack": "React Native",
    },
    {
        "title": "Express middleware execution order",
        "description_markdown": (
            "# Problem\nAuthentication middleware not working - routes are registered before auth "
            "middleware!\n\n## Correct Order\n```javascript\napp.use(express.json());\n"
            "app.use(authMiddleware); // BEFORE routes\napp.use('/api/posts', postRoutes);\n```"
        ),
        "creator": "admin",
        "severity": "CRITICAL",
        "difficulty": "BEGINNER",
        "canonical": True,
        "solved": True,
        "upvotes": 110,
        "tags": ["express", "middleware", "authentication"],
        "domain": "Web Development",
        "tech_stack": "Node.js",
    },
    {
        "title": "Scikit-learn train_test_split shuffling",
        "description_markdown": (
            "# Problem\nData not shuffled correctly in train_test_split.\n\n## Solution\n```python\n"
            "X_train, X_test, y_train, y_test = train_test_split(\n    X, y,\n    test_size=0.2,\n"
            "    shuffle=True,\n    random_state=42\n)\n```"
        ),
        "creator": "bob",
        "severity": "HIGH",
        "difficulty": "INTERMEDIATE",
        "solved": True,
        "upvotes": 38,
        "tags": ["python", "scikit-learn", "machine-learning"],
        "domain": "Data Science",
        "tech_stack": "Python",
    },
    {
        "title": "Async/await error handling in Express",
        "description_markdown": (
            "# Problem\nUnhandled promise rejections crash the server.\n\n## Solution\n```javascript\n"
            "const asyncHandler = fn => (req, res, next) => {\n"
            "  Promise.resolve(fn(req, res, next)).catch(next);\n};\n```"
        ),
        "creator": "admin",
        "severity": "CRITICAL",
        "difficulty": "INTERMEDIATE",
        "canonical": True,
        "solved": True,
        "upvotes": 95,
        "tags": ["nodejs", "express", "async-await", "error-handling"],
        "domain": "Web Development",
        "tech_stack": "Node.js",
    },
]

# Children before parents so foreign keys are never left dangling
WIPE_ORDER = [
    DBVote, DBBookmark, DBComment, DBAnswer, DBProblem,
    DBTopic, DBLanguage, DBTechStack, DBCategory, DBSubdomain, DBDomain, DBUser,
]


def clear_database(db):
    for model in WIPE_ORDER:
        db.query(model).delete(synchronize_session=False)
    db.flush()


def create_users(db) -> dict:
    users = {}
    for spec in USERS:
        user = DBUser(
            name=spec["name"],
            email=spec["email"],
            roles=spec["roles"],
            bio=spec["bio"],
            oauth_providers=[],
            interests=[],
        )
        user.password = spec["password"]
        db.add(user)
        users[spec["key"]] = user
    db.flush()
    return users


def create_classification(db) -> dict:
    """Create the tree; returns {level: {name: row}} for resolving problem references."""
    nodes = {"domain": {}, "subdomain": {}, "category": {}, "tech_stack": {}, "language": {}}

    for domain_name, domain_spec in CLASSIFICATION_TREE.items():
        domain = DBDomain(name=domain_name, slug=slugify(domain_name), description=domain_spec["description"])
        db.add(domain)
        db.flush()
        nodes["domain"][domain_name] = domain

        for subdomain_name, categories in domain_spec["subdomains"].items():
            subdomain = DBSubdomain(domain_id=domain.id, name=subdomain_name, slug=slugify(subdomain_name))
            db.add(subdomain)
            db.flush()
            nodes["subdomain"][subdomain_name] = subdomain

            for category_name, stacks in categories.items():
                category = DBCategory(subdomain_id=subdomain.id, name=category_name, slug=slugify(category_name))
                db.add(category)
                db.flush()
                nodes["category"][category_name] = category

                for stack_name, languages in stacks.items():
                    stack = DBTechStack(category_id=category.id, name=stack_name, slug=slugify(stack_name))
                    db.add(stack)
                    db.flush()
                    nodes["tech_stack"][stack_name] = stack

                    for language_name in languages:
                        language = DBLanguage(tech_stack_id=stack.id, name=language_name, slug=slugify(language_name))
                        db.add(language)
                        nodes["language"][language_name] = language
    db.flush()
    return nodes


def create_problems(db, users: dict, nodes: dict) -> int:
    for spec in PROBLEMS:
        refs = {
            f"{level}_id": nodes[level][spec[level]].id
            for level in ("domain", "subdomain", "category", "tech_stack", "language")
            if level in spec
        }
        db.add(DBProblem(
            title=spec["title"],
            description_markdown=spec["description_markdown"],
            created_by_id=users[spec["creator"]].id,
            severity=spec["severity"],
            difficulty=spec["difficulty"],
            canonical=spec.get("canonical", False),
            solved=spec.get("solved", False),
            upvotes=spec["upvotes"],
            downvotes=0,
            view_count=0,
            tags=spec["tags"],
            resources=[],
            **refs,
        ))
    db.flush()
    return len(PROBLEMS)


def seed_database(db) -> dict:
    """Replace all data with the demo data set; returns row counts created."""
    clear_database(db)
    users = create_users(db)
    nodes = create_classification(db)
    problem_count = create_problems(db, users, nodes)
    return {
        "users": len(users),
        "domains": len(nodes["domain"]),
        "tech_stacks": len(nodes["tech_stack"]),
        "problems": problem_count,
    }


def main():
    print("🔄 Seeding database...")
    init_db()

    with get_db_context() as db:
        summary = seed_database(db)

    print("✅ Seed data created successfully!")
    print(f"   Users: {summary['users']}")
    print(f"   Domains: {summary['domains']}")
    print(f"   Tech Stacks: {summary['tech_stacks']}")
    print(f"   Problems: {summary['problems']}")
    print("\n🔑 Login credentials:")
    for spec in USERS:
        print(f"   {spec['email']} / {spec['password']}")


if __name__ == "__main__":
    main()
