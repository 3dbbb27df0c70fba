"""
Synth Backend: Demo Marketplace Seed
=====================================

What:  Populates an empty store with the demo marketplace shown by the front end.
How:   Goes through the public store API: create_* for each record, then
       update_* for the fields create deliberately resets (demo snippets are
       already downloadable, demo posts already have upvotes).
When:  Called once by the application lifespan when SEED_DEMO_DATA is on and
       no snapshot was loaded.

Contents:
    2 users, 3 published snippets, 2 posts, 2 comments, 1 purchase.
    The post types "discussions" and "showcases" are kept exactly as the
    front end's demo feed expects them.
"""

import logging
from typing import Dict

from synth.schemas.inserts import (
    InsertComment,
    InsertPost,
    InsertPurchase,
    InsertSnippet,
    InsertUser,
)
from synth.storage.store import EntityStore

logger = logging.getLogger(__name__)


INFINITE_SCROLL_CODE = """import { useState, useEffect } from 'react';

function useInfiniteScroll(callback) {
  const [isFetching, setIsFetching] = useState(false);

  useEffect(() => {
    function handleScroll() {
      if (
        window.innerHeight + document.documentElement.scrollTop !== document.documentElement.offsetHeight ||
        isFetching
      )
        return;
      setIsFetching(true);
    }

    window.addEventListener('scroll', handleScroll);
    return () => window.removeEventListener('scroll', handleScroll);
  }, [isFetching]);

  useEffect(() => {
    if (!isFetching) return;
    callback();
  }, [isFetching, callback]);

  return [isFetching, setIsFetching];
}

export default useInfiniteScroll;"""

DATA_PARSER_CODE = """import pandas as pd
import numpy as np

def process_data(filename):
    # Read the CSV file
    df = pd.read_csv(filename)

    # Clean data
    df = df.dropna()

    # Transform data
    df['total'] = df['price'] * df['quantity']
    df['date'] = pd.to_datetime(df['date'])

    # Group by date
    result = df.groupby(df['date'].dt.date).agg({
        'total': 'sum',
        'quantity': 'sum'
    }).reset_index()

    return result

if __name__ == "__main__":
    result = process_data('sales.csv')
    print(result.head())"""

ANIMATED_BUTTON_CODE = """.animated-button {
  padding: 12px 24px;
  background: linear-gradient(135deg, #9A6AFF, #00FFFF);
  border: none;
  border-radius: 4px;
  color: white;
  font-weight: bold;
  position: relative;
  overflow: hidden;
  transition: all 0.3s ease;
}

.animated-button:hover {
  transform: translateY(-2px);
  box-shadow: 0 8px 16px rgba(0, 0, 0, 0.2);
}

.animated-button::before {
  content: '';
  position: absolute;
  top: 0;
  left: -100%;
  width: 100%;
  height: 100%;
  background: linear-gradient(90deg, transparent, rgba(255,255,255,0.2), transparent);
  transition: all 0.5s ease;
}

.animated-button:hover::before {
  left: 100%;
}"""


def seed_demo_data(store: EntityStore) -> Dict[str, int]:
    """
    Insert the demo marketplace into `store`.

    Returns:
        The per-kind record counts after seeding.
    """
    now = store.now()

    john = store.create_user(
        InsertUser(
            username="johndoe",
            password="password123",
            email="john@example.com",
            bio="Full-stack developer with 5 years of experience",
        )
    )
    jane = store.create_user(
        InsertUser(
            username="janedoe",
            password="password123",
            email="jane@example.com",
            bio="Frontend specialist focused on React and modern UI",
        )
    )

    demo_snippets = [
        InsertSnippet(
            title="React Infinite Scroll Hook",
            description="A custom hook for implementing infinite scroll in React applications",
            code=INFINITE_SCROLL_CODE,
            language="javascript",
            price="3.99",
            user_id=john.id,
            published_at=now,
        ),
        InsertSnippet(
            title="Python Data Parser",
            description="Efficiently parse and transform CSV data using Python",
            code=DATA_PARSER_CODE,
            language="python",
            price="4.99",
            user_id=jane.id,
            published_at=now,
        ),
        InsertSnippet(
            title="CSS Animated Button",
            description="Beautiful button with hover effects and animations",
            code=ANIMATED_BUTTON_CODE,
            language="css",
            price="2.49",
            user_id=john.id,
            published_at=now,
        ),
    ]
    snippets = []
    for payload in demo_snippets:
        snippet = store.create_snippet(payload)
        snippets.append(store.update_snippet(snippet.id, downloadable=True))
    scroll_hook = snippets[0]

    react_post = store.create_post(
        InsertPost(
            title="Thoughts on React 18 features",
            content=(
                "I've been using the new concurrent rendering features in React 18 and it's a "
                "game changer for complex UIs. The automatic batching of state updates has "
                "significantly improved performance in my app. What are your experiences with "
                "React 18?"
            ),
            user_id=john.id,
            type="discussions",
        )
    )
    store.update_post(react_post.id, upvotes=5)

    portfolio_post = store.create_post(
        InsertPost(
            title="Check out my new portfolio site!",
            content=(
                "I just launched my new portfolio site built with Astro and Tailwind CSS. It "
                "features a dark mode toggle, animated page transitions, and a live code editor "
                "for demonstrations. Would love to get your feedback!"
            ),
            user_id=jane.id,
            type="showcases",
        )
    )
    store.update_post(portfolio_post.id, upvotes=8)

    store.create_comment(
        InsertComment(
            content="Great snippet! Saved me hours of work.",
            user_id=jane.id,
            snippet_id=scroll_hook.id,
        )
    )
    store.create_comment(
        InsertComment(
            content="I agree, the automatic batching is incredibly useful.",
            user_id=jane.id,
            post_id=react_post.id,
        )
    )

    store.create_purchase(
        InsertPurchase(snippet_id=scroll_hook.id, buyer_id=jane.id, price=scroll_hook.price)
    )

    counts = store.count_records()
    logger.info("Seeded demo marketplace: %s", {k: v for k, v in counts.items() if v})
    return counts
