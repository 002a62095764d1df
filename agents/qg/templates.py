"""Fixed question pools per difficulty and topic."""
from __future__ import annotations

from typing import Dict, List

QUESTION_TEMPLATES: Dict[str, Dict[str, List[str]]] = {
    "easy": {
        "react": [
            "What is React and why would you use it?",
            "Explain the difference between functional and class components in React.",
            "What is JSX and how does it work?",
            "What are React Hooks and why are they useful?",
            "Explain the concept of props in React.",
            "What is state in React and how do you manage it?",
            "What is the virtual DOM and how does it improve performance?",
            "Explain the component lifecycle in React.",
        ],
        "javascript": [
            "What is the difference between let, const, and var in JavaScript?",
            "Explain the concept of hoisting in JavaScript.",
            "What are arrow functions and how do they differ from regular functions?",
            "Explain the difference between == and === in JavaScript.",
            "What is a closure in JavaScript?",
            "What are template literals and how do you use them?",
            "Explain the concept of promises in JavaScript.",
            "What is the event loop in JavaScript?",
        ],
        "general": [
            "What is version control and why is it important?",
            "Explain the difference between frontend and backend development.",
            "What is a REST API and how does it work?",
            "What is a database and why do we need one?",
            "Explain the concept of responsive design.",
            "What is the difference between HTTP and HTTPS?",
            "What is a web server and how does it work?",
            "Explain the concept of caching in web development.",
        ],
    },
    "medium": {
        "react": [
            "How does React handle state management in complex applications?",
            "Explain the React Context API and when to use it.",
            "What are React Portals and when would you use them?",
            "Explain React refs and their use cases.",
            "How do you optimize React application performance?",
            "What is React.memo and how does it work?",
            "Explain the difference between useEffect and useLayoutEffect.",
            "How do you handle forms in React?",
        ],
        "javascript": [
            "Explain prototypal inheritance in JavaScript.",
            "What is the module pattern and how do you implement it?",
            "Explain event delegation in JavaScript.",
            "What are generators and iterators in JavaScript?",
            "How does JavaScript handle asynchronous operations?",
            "Explain the concept of currying in JavaScript.",
            "What is the difference between call, apply, and bind?",
            "How do you implement inheritance in JavaScript?",
        ],
        "general": [
            "What is the difference between SQL and NoSQL databases?",
            "Explain the concept of microservices architecture.",
            "What is Docker and how does it help in development?",
            "Explain the concept of API rate limiting.",
            "What is a WebSocket and how does it differ from HTTP?",
            "Explain how JWT authentication works.",
            "What is CORS and why do we need it?",
            "How does browser caching work?",
        ],
    },
    "hard": {
        "react": [
            "How would you implement a custom React hook for data fetching?",
            "Explain the React Fiber architecture and the reconciliation algorithm.",
            "How do you handle error boundaries in React applications?",
            "What are React concurrent features and how do they work?",
            "Explain React Suspense and lazy loading.",
            "How do you optimize bundle size in React applications?",
            "What are React Server Components and how do they work?",
            "How would you use the React DevTools Profiler to find a slow render?",
        ],
        "javascript": [
            "Explain closures in JavaScript and give a practical example.",
            "How does JavaScript garbage collection work?",
            "When would you choose event delegation over per-element listeners?",
            "Explain the module loading process in JavaScript.",
            "How do you implement a custom bind function?",
            "What is the difference between macrotasks and microtasks?",
            "Explain the concept of tail call optimization.",
            "How do you implement a debounce function from scratch?",
        ],
        "general": [
            "Explain distributed systems and their main challenges.",
            "What is load balancing and how does it work?",
            "Explain the CAP theorem in distributed systems.",
            "What is container orchestration and why do we need it?",
            "Explain the concept of a service mesh in microservices.",
            "What is serverless computing and what are its benefits?",
            "How does a CDN (Content Delivery Network) work?",
            "Explain the concept of progressive web apps (PWA).",
        ],
    },
}

GENERIC_QUESTION = "Tell me about your experience with {topic} development."
GENERIC_VARIANT = "Tell me about another project where you used {topic} ({n})."


def pool_for(difficulty: str, topic: str) -> List[str]:
    """Return the template pool for the pair, or an empty list."""

    return list(QUESTION_TEMPLATES.get(difficulty, {}).get(topic, []))


__all__ = ["QUESTION_TEMPLATES", "GENERIC_QUESTION", "GENERIC_VARIANT", "pool_for"]
